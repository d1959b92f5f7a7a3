"""
Headless matching run - no GUI windows, just saves results
Matches one captured image against a directory of reference images
"""

import cv2
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent))

from refmatch.core import MatchProcessor
from refmatch.exceptions import RefMatchError
from refmatch.preprocessing.image_loader import ImageLoader
from refmatch.utils.io_handler import JSONWriter, read_image_bytes, save_image
from refmatch.utils.logger import setup_logger
from refmatch.utils.visualization import blend_comparison, draw_quadrilaterals


def main():
    """Match a captured image against a reference directory."""

    if len(sys.argv) < 3:
        print("Usage: python match_image.py <reference_dir> <captured_image> [output_dir] [config.yaml]")
        print("\nExample:")
        print("  python match_image.py images-source captures/photo.jpg output")
        sys.exit(1)

    reference_dir = Path(sys.argv[1])
    image_path = Path(sys.argv[2])
    output_dir = Path(sys.argv[3]) if len(sys.argv) > 3 else Path("output")
    config_path = Path(sys.argv[4]) if len(sys.argv) > 4 else None

    logger = setup_logger('refmatch')

    if not image_path.exists():
        print(f"[X] Error: Image not found at '{image_path}'")
        sys.exit(1)

    print("=" * 60)
    print("refmatch - Reference Image Matching")
    print("=" * 60)
    print(f"References: {reference_dir}")
    print(f"Captured:   {image_path}")

    try:
        processor = MatchProcessor.from_directory(reference_dir, config_path=config_path)
    except RefMatchError as e:
        logger.error(f"Invalid configuration: {e}")
        sys.exit(1)
    processor.load()

    image_bytes = read_image_bytes(str(image_path))
    try:
        result = processor.detect(image_bytes)
    except RefMatchError as e:
        logger.error(f"Detection failed: {e}")
        sys.exit(1)

    print("\n" + "=" * 60)
    print("RESULTS")
    print("=" * 60)
    print(f"Status:          {result.status.upper()}")
    print(f"Best reference:  {result.best_reference_id or '-'}")
    print(f"Confidence:      {result.confidence:.2f}%")
    print(f"Matches:         {result.match_count} / {result.keypoint_count} keypoints")
    print(f"Quadrilaterals:  {len(result.quadrilaterals)}")
    print(f"Processing Time: {result.processing_time_ms:.0f}ms")
    print("-" * 60)
    for comparison in result.comparisons:
        print(f"  {comparison.describe()}")
    print("=" * 60)

    # Visualizations work on the same normalized grid the detector saw
    loader = ImageLoader(processor.config["loader"]["max_long_edge"])
    captured = loader.decode(image_bytes)

    annotated = draw_quadrilaterals(captured, result.quadrilaterals)
    status_color = (0, 255, 0) if result.match_found else (0, 165, 255)
    cv2.putText(annotated, f"{result.status.upper()} {result.confidence:.1f}%",
                (10, 30), cv2.FONT_HERSHEY_SIMPLEX, 1, status_color, 2)
    annotated_path = output_dir / "annotated.jpg"
    save_image(annotated, str(annotated_path))
    print(f"\n[OK] Annotated capture saved to: {annotated_path}")

    if result.best_reference_id is not None:
        reference = loader.load(reference_dir / result.best_reference_id)
        overlay_path = output_dir / "comparison.jpg"
        save_image(blend_comparison(reference, captured), str(overlay_path))
        print(f"[OK] Comparison overlay saved to: {overlay_path}")

    json_path = output_dir / "result.json"
    JSONWriter.save_results(result.to_dict(), str(json_path))
    print(f"[OK] Result JSON saved to: {json_path}")


if __name__ == "__main__":
    main()
