import logging
import sys

from fnbundle.archive import archive
from fnbundle.config import configure_logging, load_excludes, settings
from fnbundle.errors import ArchiveError, ConfigError

logger = logging.getLogger("build_zip")

def main() -> int:
    configure_logging()
    try:
        excludes = load_excludes(settings.exclude_file)
        size = archive(settings.src, settings.dest, excludes, follow_symlinks=settings.follow_symlinks)
    except (ArchiveError, ConfigError) as e:
        logger.error("%s", e)
        return 1

    if settings.dest != "-":
        logger.info("Created: %s (%.2f MB)", settings.dest, size / (1024 * 1024))
    return 0

if __name__ == "__main__":
    sys.exit(main())
