"""
Configuration-related exceptions for trunkbot.
"""


class ConfigurationError(Exception):
    """
    Raised when configuration loading or validation fails.

    Covers file loading issues, YAML parsing errors, Pydantic validation
    failures, regexes that do not compile and references to unknown shared
    patterns or channel groups.
    """
    pass
