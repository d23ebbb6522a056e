import sys
from typing import TextIO, Optional
import structlog

log = structlog.get_logger(__name__)

def write_path_line(path: str, stream: Optional[TextIO] = None):
    # writes one discovered path to standard output.
    stream = stream or sys.stdout
    try:
        stream.write(path + "\n")
    except UnicodeEncodeError as e:
        log.warning("stdout_write_failed_trying_binary_fallback", error=str(e))
        stream.flush()
        stream.buffer.write(path.encode("utf-8", errors="surrogateescape") + b"\n")
