from .console_reporter import ConsoleReporter, findings_to_json

__all__ = ["ConsoleReporter", "findings_to_json"]
