"""
This module provides the ConfigManager class for managing configuration settings
of the application. The configuration settings are stored in a 'config.yaml' file.
"""

import os
import sys
import logging
import pytz
from ruamel.yaml import YAML
from ruamel.yaml.comments import CommentedMap

logger = logging.getLogger("__main__")
logger.info("[Config] loading module ")


class ConfigManager:
    """
    Manages the configuration settings for the application.

    This class handles loading and saving configuration settings from a 'config.yaml'
    file. If the configuration file does not exist, it creates one with default values and
    asks the user to fill in the price source settings.
    """

    def __init__(self, given_dir):
        self.current_dir = given_dir
        self.config_file = os.path.join(self.current_dir, "config.yaml")
        self.yaml = YAML()
        self.yaml.default_flow_style = False
        self.yaml.indent(mapping=2, sequence=4, offset=2)
        self.yaml.preserve_quotes = True
        self.default_config = self.create_default_config()
        self.config = self.default_config.copy()
        self.load_config()

    def create_default_config(self):
        """
        Creates the default configuration with comments.
        """
        config = CommentedMap(
            {
                "price": CommentedMap(
                    {
                        "source": "homeassistant",
                        "url": "http://homeassistant:8123",
                        "access_token": "abc123",
                        "entity_id": "sensor.electricity_price",
                        "timeout": 10,
                        "lookback_days": 7,
                    }
                ),
                "time_zone": "Europe/Berlin",
                "log_level": "info",
            }
        )
        config.yaml_set_comment_before_after_key(
            "price", before="Electricity price history configuration"
        )
        config["price"].yaml_add_eol_comment(
            "data source for historical prices - homeassistant", "source"
        )
        config["price"].yaml_add_eol_comment(
            "URL for homeassistant (e.g. http://homeassistant:8123)", "url"
        )
        config["price"].yaml_add_eol_comment(
            "long-lived access token for homeassistant", "access_token"
        )
        config["price"].yaml_add_eol_comment(
            "entity recording the electricity price", "entity_id"
        )
        config["price"].yaml_add_eol_comment(
            "timeout for history requests in seconds - default: 10", "timeout"
        )
        config["price"].yaml_add_eol_comment(
            "days of price history kept by homeassistant (recorder purge_keep_days)",
            "lookback_days",
        )
        config.yaml_add_eol_comment(
            "Default time zone - default: Europe/Berlin", "time_zone"
        )
        config.yaml_add_eol_comment(
            "Log level for the application : debug, info, warning, error - default: info",
            "log_level",
        )
        return config

    def load_config(self):
        """
        Reads the configuration from 'config.yaml' file located in the current directory.
        If the file exists, it loads the configuration values.
        If the file does not exist, it creates a new 'config.yaml' file with default values and
        exits, asking the user to configure the settings first.
        """
        if os.path.exists(self.config_file):
            with open(self.config_file, "r", encoding="utf-8") as f:
                loaded = self.yaml.load(f)
            if loaded:
                self.config.update(loaded)
        else:
            self.write_config()
            print("Config file not found. Created a new one with default values.")
            print("Please configure the price source in config.yaml and run again")
            sys.exit(0)

    def write_config(self):
        """
        Writes the configuration to 'config.yaml' file located in the current directory.
        """
        logger.info("[Config] writing config file")
        with open(self.config_file, "w", encoding="utf-8") as config_file_handle:
            self.yaml.dump(self.config, config_file_handle)

    def get_time_zone(self):
        """
        Returns the configured time zone as a pytz zone, UTC if the name is unknown.
        """
        name = self.config.get("time_zone") or "UTC"
        try:
            return pytz.timezone(name)
        except pytz.UnknownTimeZoneError:
            logger.warning("[Config] Unknown time zone '%s', using UTC", name)
            return pytz.utc

    def get_log_level(self):
        """
        Returns the configured log level name in upper case, INFO if invalid.
        """
        level = str(self.config.get("log_level") or "info").upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR"):
            logger.warning("[Config] Invalid log_level '%s', using INFO", level)
            return "INFO"
        return level
