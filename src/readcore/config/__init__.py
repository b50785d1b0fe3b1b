from .config import Config, ExtractionSettings, LoggingConfig, ParserSettings, ReaderableSettings

__all__ = ["Config", "ExtractionSettings", "LoggingConfig", "ParserSettings", "ReaderableSettings"]
