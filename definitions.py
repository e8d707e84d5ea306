from pathlib import Path

# Log files land here (relative to the working directory) unless --console is used.
# Overridden by --log-dir or script.log_dir in the config file.
LOGS_DIR = Path("logs")
