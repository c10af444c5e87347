"""
hanzi-review: spaced repetition and fill-test quizzes for Chinese characters.
"""

import logging
import os

_logger = logging.getLogger(__name__)
_logger.addHandler(logging.NullHandler())

_log_level = os.getenv("HANZI_REVIEW_LOG_LEVEL")
if _log_level:
    _logger.setLevel(_log_level.upper())
