"""
Docscan - Document Scanning Tool
Flattens photographed documents with a perspective warp, cleans them up
with filters and composes the pages onto a printable A4 page.
Features: Auto corner detection, Filter presets, PDF input, PDF/PNG export
"""

import argparse
import logging
import sys

from scanlib import (CornerEstimator, DocumentSession, ImageCodec,
                     OutputPage, PRESETS, ScanError, UnitConverter, order_points)
from scanlib.config import (ESTIMATOR_STRIDE, ESTIMATOR_THRESHOLD, MAX_INPUT_BYTES,
                            PAGE_DPI, PAGE_HEIGHT_MM, PAGE_WIDTH_MM)
from scanlib.geometry import normalize_quad


def parse_corners(text):
    """Parse 'x1,y1,x2,y2,x3,y3,x4,y4' into four (x, y) points"""
    try:
        values = [float(v) for v in text.replace(';', ',').split(',') if v.strip()]
    except ValueError:
        raise argparse.ArgumentTypeError(f"Corners must be numbers: '{text}'") from None
    if len(values) != 8:
        raise argparse.ArgumentTypeError(f"Expected 8 numbers (4 corners), got {len(values)}")
    return [(values[i], values[i + 1]) for i in range(0, 8, 2)]


def build_parser():
    parser = argparse.ArgumentParser(description='Docscan - Document Scanning Tool')
    parser.add_argument('images', nargs='+', help='Photos of document pages, or PDFs (one page per PDF page)')
    parser.add_argument('-o', '--output', default='scan.pdf',
                        help='Output file, .pdf or .png (default: scan.pdf)')
    parser.add_argument('--corners', type=parse_corners, action='append',
                        help='Corner pixels x1,y1,...,x4,y4 in any order; give once per image')
    parser.add_argument('--auto', action='store_true',
                        help='Detect the document corners automatically')
    parser.add_argument('--preset', type=str.upper, choices=list(PRESETS), default='ORIGINAL',
                        help='Filter preset (default: ORIGINAL)')
    parser.add_argument('--rotate', type=int, choices=[0, 90, 180, 270], default=0,
                        help='Rotate every page clockwise by this many degrees')
    parser.add_argument('--threshold', type=float, default=ESTIMATOR_THRESHOLD,
                        help=f'Color distance counted as content for --auto (default: {ESTIMATOR_THRESHOLD})')
    parser.add_argument('--stride', type=int, default=ESTIMATOR_STRIDE,
                        help=f'Pixel sampling stride for --auto (default: {ESTIMATOR_STRIDE})')
    parser.add_argument('--dpi', type=int, default=PAGE_DPI,
                        help=f'Output DPI (default: {PAGE_DPI})')
    parser.add_argument('--max-size', type=float, default=MAX_INPUT_BYTES / 1024 / 1024,
                        help='Largest accepted input in MB (default: 10)')
    parser.add_argument('-v', '--verbose', action='store_true', help='Show debug output')
    return parser


def run(args):
    """
    Scan every image into one composed document.

    Returns:
        Number of pages in the document
    """
    # Keep the A4 physical size at the requested DPI
    converter = UnitConverter(units="mm", dpi=args.dpi)
    page = OutputPage(width=converter.units_to_pixels(PAGE_WIDTH_MM),
                      height=converter.units_to_pixels(PAGE_HEIGHT_MM), dpi=args.dpi)
    codec = ImageCodec(max_bytes=int(args.max_size * 1024 * 1024), dpi=args.dpi)
    estimator = CornerEstimator(threshold=args.threshold, stride=args.stride)
    session = DocumentSession(codec=codec, page=page, estimator=estimator)

    for index, image in enumerate(args.images):
        session.enqueue(image)

        # A PDF yields one editor per page; its pages share the image settings
        while True:
            editor = session.next_editor()
            if editor is None:
                break

            if args.corners:
                corners = args.corners[index] if len(args.corners) > 1 else args.corners[0]
                corners = order_points(corners)
                editor.crop.set_corners(normalize_quad(corners, editor.source.width, editor.source.height))
            elif args.auto:
                editor.auto_detect()

            if args.rotate:
                editor.rotate(args.rotate)
            editor.apply_preset(args.preset)

            session.commit(editor)
            if editor.warp_degraded:
                print("Warning: perspective correction failed, page kept unwarped", file=sys.stderr)

    for handle, error in session.failures:
        print(f"Skipped {handle}: {error}", file=sys.stderr)

    if not len(session):
        raise ScanError("No pages could be scanned")

    session.save(args.output)
    width, height = page.physical_size(converter.units)
    print(f"Wrote {len(session)} page(s) to {args.output} "
          f"({width:.0f}x{height:.0f} {converter.get_unit_label()} @ {page.dpi} DPI)")
    return len(session)


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.corners and len(args.corners) not in (1, len(args.images)):
        parser.error('Give --corners once, or once per image')
    if args.stride < 1:
        parser.error('--stride must be at least 1')
    if args.dpi <= 0:
        parser.error('--dpi must be positive')

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING,
                        format='%(levelname)s: %(message)s')

    try:
        run(args)
    except ScanError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
