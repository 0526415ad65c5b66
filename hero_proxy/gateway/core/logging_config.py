from hero_proxy.common.core.logging_config import setup_logging as common_setup_logging

from ..config import config


def setup_logging():
    """
    Load the YAML config and initialize logging for the proxy.
    """
    common_setup_logging(config.LOG_CONFIG_PATH)
