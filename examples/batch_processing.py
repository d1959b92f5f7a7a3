"""Batch processing example for multiple captures."""

from pathlib import Path
from refmatch.core import MatchProcessor
from refmatch.exceptions import DecodeError
from refmatch.utils.io_handler import JSONWriter, read_image_bytes
from refmatch.utils.logger import setup_logger


def main():
    """Match every capture in a directory against the same catalog."""
    logger = setup_logger('batch_matcher')

    processor = MatchProcessor.from_directory("test_data/references")
    processor.load().result()
    logger.info(f"Catalog ready with {len(processor.catalog)} references")

    capture_files = sorted(Path("test_data/captures").glob("*.jpg"))
    logger.info(f"Processing {len(capture_files)} captures...")

    results = []
    for i, capture_path in enumerate(capture_files):
        logger.info(f"Processing capture {i+1}/{len(capture_files)}: {capture_path.name}")

        try:
            result = processor.detect(read_image_bytes(str(capture_path)))
        except DecodeError as e:
            logger.warning(f"Could not decode {capture_path}: {e}")
            continue

        entry = result.to_dict()
        entry['capture_name'] = capture_path.name
        results.append(entry)

    JSONWriter.save_results(results, "output/batch_results.json")
    logger.info("Batch processing complete!")


if __name__ == "__main__":
    main()
