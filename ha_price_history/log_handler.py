"""
Logging helpers: a timezone-aware formatter and a thread-safe in-memory handler that keeps
recent records, warnings and structured gap events for later inspection.
"""

import logging
import collections
from datetime import datetime
from threading import RLock
import sys

# attributes carried by structured log events (passed via `extra=`)
EVENT_FIELDS = ("event", "index", "timestamp")


class TimezoneFormatter(logging.Formatter):
    """
    A custom logging formatter that formats log timestamps according to a specified timezone.
    """

    def __init__(self, fmt=None, datefmt=None, tz=None):
        super().__init__(fmt, datefmt)
        self.tz = tz

    def formatTime(self, record, datefmt=None):
        # Convert the record's timestamp to the configured timezone
        record_time = datetime.fromtimestamp(record.created, self.tz)
        return record_time.strftime(datefmt or self.default_time_format)


class MemoryLogHandler(logging.Handler):
    """
    Custom logging handler that stores log records in memory.
    Thread-safe implementation with configurable buffer size and separate alert storage.
    Records logged with an `event` extra are kept with their event fields.
    """

    def __init__(self, max_records=1000, max_alerts=1000):
        super().__init__()
        self.max_records = max_records
        self.max_alerts = max_alerts

        # Main log buffer (all log levels)
        self.records = collections.deque(maxlen=max_records)

        # Dedicated alert buffer (WARNING, ERROR, CRITICAL only)
        self.alert_records = collections.deque(maxlen=max_alerts)

        self.lock = RLock()
        self._shutdown = False
        self.alert_levels = {"WARNING", "ERROR", "CRITICAL"}

    def emit(self, record):
        """Store the log record in memory"""
        if self._shutdown:
            return
        try:
            tz = getattr(self.formatter, "tz", None) if self.formatter else None
            log_entry = {
                "timestamp": datetime.fromtimestamp(record.created, tz).isoformat(),
                "level": record.levelname,
                "message": record.getMessage(),
                "module": record.name,
                "funcName": record.funcName,
                "lineno": record.lineno,
            }
            if getattr(record, "event", None):
                log_entry["event"] = {
                    field: getattr(record, field, None) for field in EVENT_FIELDS
                }

            with self.lock:
                self.records.append(log_entry)
                if record.levelname in self.alert_levels:
                    self.alert_records.append(log_entry)
        except (TypeError, ValueError):
            # Absolutely no exceptions should escape from a log handler
            sys.stderr.write("MemoryLogHandler error: failed to store log entry\n")

    def get_logs(self, level_filter=None, limit=None):
        """Retrieve logs with optional filtering from main buffer"""
        with self.lock:
            logs = list(self.records)
        if level_filter:
            logs = [log for log in logs if log["level"] == level_filter.upper()]
        if limit and limit > 0:
            logs = logs[-limit:]
        return logs

    def get_alerts(self, limit=None):
        """Get WARNING and above records from the dedicated alert buffer"""
        with self.lock:
            alerts = list(self.alert_records)
        if limit and limit > 0:
            alerts = alerts[-limit:]
        return alerts

    def get_events(self, name=None):
        """Get the structured events, optionally only those called `name`"""
        with self.lock:
            events = [log["event"] for log in self.records if "event" in log]
        if name:
            events = [event for event in events if event["event"] == name]
        return events

    def clear_logs(self):
        """Clear all stored logs from both buffers"""
        with self.lock:
            self.records.clear()
            self.alert_records.clear()

    def shutdown(self):
        """
        Shutdown the handler gracefully.
        Stops accepting new log entries and clears resources.
        """
        with self.lock:
            self._shutdown = True
            self.records.clear()
            self.alert_records.clear()

    def close(self):
        """
        Close the handler (called by logging framework).
        """
        self.shutdown()
        super().close()
