import json
import fcntl
import os


def _lock_path(file_path):
    return file_path + ".lock"


def load_json_secure(file_path):
    """
    Read JSON under a shared lock
    Raises FileNotFoundError / json.JSONDecodeError so callers can decide on defaults
    """
    lock_path = _lock_path(file_path)
    if not os.path.exists(file_path):
        raise FileNotFoundError(file_path)

    with open(lock_path, "a") as lockfile:
        fcntl.flock(lockfile, fcntl.LOCK_SH)
        try:
            with open(file_path, "r") as f:
                return json.load(f)
        finally:
            fcntl.flock(lockfile, fcntl.LOCK_UN)


def save_json_secure(file_path, data):
    lock_path = _lock_path(file_path)

    with open(lock_path, "a") as lockfile:
        fcntl.flock(lockfile, fcntl.LOCK_EX)
        try:
            temp_path = file_path + ".tmp"
            with open(temp_path, "w") as f:
                json.dump(data, f, indent=4)
                f.flush()
                os.fsync(f.fileno())
            os.replace(temp_path, file_path)

        finally:
            fcntl.flock(lockfile, fcntl.LOCK_UN)
