import json, logging, os, sys
from datetime import datetime, timezone
from typing import Optional

class JsonFormatter(logging.Formatter):
    def format(self, record):
        payload = {
            "ts": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        for k in ("request_id", "route", "remote_addr", "session_id", "error_code"):
            if hasattr(record, k):
                payload[k] = getattr(record, k)
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False)

def configure_logging():
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(JsonFormatter())

    # Operator log, always appended
    log_file = os.getenv("NOMAD_LOG_FILE", "nomadverify.log")
    file_handler = logging.FileHandler(log_file, mode='a')
    file_handler.setFormatter(JsonFormatter())

    root = logging.getLogger()
    log_level = os.getenv("NOMAD_LOG_LEVEL", "INFO").upper()
    root.setLevel(getattr(logging, log_level, logging.INFO))
    root.handlers = [console_handler, file_handler]

def short_id(session_id: Optional[object]) -> str:
    """Truncate a session id for log lines.

    Args:
        session_id: Raw id as found in a request or store record; non-string
            ids (e.g. numbers from a hand-edited record) are stringified.

    Returns:
        First 8 characters followed by "...", or "-" when absent.
    """
    if session_id is None or session_id == "":
        return "-"
    return f"{str(session_id)[:8]}..."
