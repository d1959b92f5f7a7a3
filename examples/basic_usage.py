"""Basic usage example for refmatch."""

from refmatch.core import MatchProcessor
from refmatch.utils.io_handler import read_image_bytes


def main():
    """Match one capture against the bundled references."""
    processor = MatchProcessor.from_directory(
        "test_data/references",
        config={"scoring": {"confidence_threshold": 0.5}}
    )

    # Loading runs in the background; detect() waits for it
    processor.load()

    image_bytes = read_image_bytes("test_data/captures/sample.jpg")
    result = processor.detect(image_bytes, timeout=30)

    if result.match_found:
        print(f"Matched {result.best_reference_id} ({result.confidence:.1f}%)")
    else:
        print(f"No match (best confidence {result.confidence:.1f}%)")
    print(f"Detected {len(result.quadrilaterals)} quadrilaterals")


if __name__ == "__main__":
    main()
