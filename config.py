"""
CallMe
Copyright (C) 2024 thiccaxe

This program is free software: you can redistribute it and/or modify
it under the terms of the GNU Affero General Public License as published
by the Free Software Foundation, either version 3 of the License, or
(at your option) any later version.

This program is distributed in the hope that it will be useful,
but WITHOUT ANY WARRANTY; without even the implied warranty of
MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
GNU Affero General Public License for more details.

You should have received a copy of the GNU Affero General Public License
along with this program.  If not, see <https://www.gnu.org/licenses/>.
"""

import logging
from pathlib import Path
from typing import Optional

from voluptuous import Schema, Required, Optional as SchemaOptional, Any, All, Range, Length, Upper, In, Coerce
import voluptuous.error
import aiofiles
import tomlkit
import tomlkit.exceptions

LOG_LEVELS = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG", "NOTSET")


class ConfigurationLoadError(Exception): pass


class Config:
    config: dict
    config_opened: bool = False

    def __init__(self, config_location: Path, port_override: Optional[str] = None):
        self.config_location = Path(config_location)
        self.port_override = port_override

        self.config_schema = Schema({
            Required('server'): {
                Required('host'): str,
                Required('port'): All(int, Range(min=0, max=65535)),
                SchemaOptional('origins', default=None): Any(None, [All(str, Length(min=1))]),
            },
            SchemaOptional('static'): {
                Required('directory'): All(str, Length(min=1)),
                SchemaOptional('index', default='index.html'): All(str, Length(min=1)),
            },
            SchemaOptional('logging', default={'level': 'INFO'}): {
                SchemaOptional('level', default='INFO'): All(str, Upper, In(LOG_LEVELS)),
            },
        })
        self.port_schema = Schema(All(Coerce(int), Range(min=0, max=65535)))

    async def initialize(self):
        try:
            async with aiofiles.open(self.config_location, 'r', encoding='utf-8') as config_file:
                file_data = await config_file.read()
                document = tomlkit.parse(file_data)
                logging.debug("Loaded Configuration without toml format error")
                logging.debug("Validating against Schema.")
                self.config = self.config_schema(document.unwrap())
                logging.debug("Validated against Schema.")
        except FileNotFoundError as e:
            logging.exception(e)
            logging.warning(
                f"Could not find {self.config_location}. Copy from .example/config.toml to {self.config_location}")
            raise ConfigurationLoadError() from e
        except IOError as e:
            logging.exception(e)
            logging.warning(f"Could not open file {self.config_location}")
            raise ConfigurationLoadError() from e
        except tomlkit.exceptions.ParseError as e:
            logging.exception(e)
            logging.warning(f"Configuration in {self.config_location} is invalid")
            raise ConfigurationLoadError() from e
        except UnicodeDecodeError as e:
            logging.exception(e)
            logging.warning(f"Configuration in {self.config_location} is not valid UTF-8")
            raise ConfigurationLoadError() from e
        except voluptuous.error.MultipleInvalid as e:
            logging.exception(e)
            logging.warning(f"Configuration in {self.config_location} does not match expected format")
            logging.warning(f"Issue configuration item: {e.path}")
            raise ConfigurationLoadError() from e

        if self.port_override:
            try:
                self.config['server']['port'] = self.port_schema(self.port_override)
            except voluptuous.error.Invalid as e:
                logging.exception(e)
                logging.warning(f"PORT={self.port_override!r} is not a valid port")
                raise ConfigurationLoadError() from e
            logging.debug(f"Port overridden from environment")

        self.config_opened = True
        logging.info(f"Configuration loaded.")
