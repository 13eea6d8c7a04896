"""
Target list loading
"""

import logging
from typing import List

import aiofiles

from core.exceptions import ConfigError
from utils.network import DEFAULT_PORT, ServerAddress

logger = logging.getLogger(__name__)

async def load_targets(file_path: str, default_port: int = DEFAULT_PORT) -> List[ServerAddress]:
    """Load host[:port] entries from a file, one per line

    Blank lines and lines starting with '#' are ignored; a trailing
    '# comment' on an entry is dropped. Invalid entries are logged and
    skipped.
    """
    targets: List[ServerAddress] = []
    try:
        async with aiofiles.open(file_path, 'r', encoding='utf-8') as f:
            line_num = 0
            async for line in f:
                line_num += 1
                line = line.split('#', 1)[0].strip()
                if not line:
                    continue

                try:
                    targets.append(ServerAddress.parse(line, default_port))
                except ValueError as e:
                    logger.warning(f"Invalid entry on line {line_num}: {line} - {e}")
    except FileNotFoundError:
        raise ConfigError(f"Target file not found: {file_path}")
    except OSError as e:
        raise ConfigError(f"Failed to read target file {file_path}: {e}") from e

    logger.info(f"Loaded {len(targets)} targets from {file_path}")
    return targets
