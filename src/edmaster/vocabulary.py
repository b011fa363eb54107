import glob
import logging
import os
from typing import Dict, List

import pandas as pd
from pydantic import ValidationError

from .content import DEFAULT_WORDS
from .models import WordItem

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS = ("word", "sound")


class WordBank:
    """Loads the bundled -ed word lists from CSV files."""

    def __init__(self, directory: str):
        self.directory = directory
        self.items: List[WordItem] = []
        self.sources: Dict[str, int] = {}

    def load_all(self):
        self.items = []
        self.sources = {}
        seen = set()

        if not os.path.isdir(self.directory):
            logger.warning(f"Vocabulary directory {self.directory} not found.")
        else:
            csv_files = sorted(glob.glob(os.path.join(self.directory, "*.csv")))
            for file_path in csv_files:
                file_name = os.path.splitext(os.path.basename(file_path))[0]
                try:
                    df = pd.read_csv(
                        file_path, encoding="utf-8", dtype=str, keep_default_na=False
                    )
                except Exception as e:
                    logger.error(f"Failed to load {file_path}: {e}")
                    continue
                if not all(col in df.columns for col in REQUIRED_COLUMNS):
                    logger.error(f"Skipping {file_name}: Missing columns.")
                    continue

                loaded = 0
                for row in df.to_dict("records"):
                    try:
                        item = WordItem(
                            word=row["word"],
                            sound=row["sound"],
                            rule=row.get("rule", ""),
                            exampleSentence=row.get("example_sentence", ""),
                        )
                    except (ValidationError, ValueError) as e:
                        logger.error(f"Skipping row {row!r} in {file_name}: {e}")
                        continue
                    if item.word in seen:
                        continue
                    seen.add(item.word)
                    self.items.append(item)
                    loaded += 1
                self.sources[file_name] = loaded
                logger.info(f"Loaded {loaded} words from {file_name}")

        if not self.items:
            logger.warning("No word lists found. Loading built-in words.")
            self.items = list(DEFAULT_WORDS)
            self.sources = {"builtin": len(self.items)}

    def get_words(self) -> List[WordItem]:
        if not self.items:
            self.load_all()
        return list(self.items)
