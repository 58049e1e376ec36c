from .history import AlertHistory, AlertRecord, format_alert_title

__all__ = [
    "AlertHistory",
    "AlertRecord",
    "format_alert_title",
]
