import io
import logging
import os
import shutil

from ec2.config import validate_key_file_path
from ec2.results import StepResult

logger = logging.getLogger(__name__)

BUFFER_SIZE = 1024
KEY_FILE_MODE = 0o600


def open_key_file(path):
    """Open `path` for writing, creating it with owner-only permissions"""
    fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, KEY_FILE_MODE)
    return os.fdopen(fd, 'w')


def persist_key_material(material, path, logger=logger, buffer_size=BUFFER_SIZE):
    """
    Write private key material to `path`.

    The material is copied through a fixed-size buffer and the file is closed on
    every exit path. A directory path raises KeyFilePathError before anything is
    opened; I/O errors are logged and returned as a failed StepResult.
    An existing file is overwritten.
    """
    path = os.path.abspath(path)
    validate_key_file_path(path)

    try:
        os.makedirs(os.path.dirname(path), exist_ok=True)
        with io.StringIO(material) as reader, open_key_file(path) as writer:
            shutil.copyfileobj(reader, writer, buffer_size)
            writer.flush()
        # O_CREAT mode does not apply to a file that already exists
        os.chmod(path, KEY_FILE_MODE)
    except OSError as e:
        logger.info("Could not write key-pair material to file %s: %s", path, e)
        return StepResult.failed(e)

    logger.info("Written key-pair material to file %s", path)
    return StepResult.ok()
