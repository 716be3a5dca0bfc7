import argparse, logging, sys
from typing import Optional, Sequence

from jpegrecover.carver import JpegCarver
from jpegrecover.rawio import RawMedium
from jpegrecover.sink import ArtifactCreationError, DirectorySink
from jpegrecover.utils import format_progress

log = logging.getLogger("jpegrecover")

class _Parser(argparse.ArgumentParser):
    # usage errors exit with 1, like every other failure
    def error(self, message):
        self.print_usage(sys.stderr)
        self.exit(1, f"{self.prog}: error: {message}\n")

def main(argv: Optional[Sequence[str]] = None) -> int:
    p = _Parser(prog="jpegrecover", description="Recover JPEG files from a raw disk or disk image")
    p.add_argument("source", help="Path to image file or raw device (\\\\.\\E:)")
    p.add_argument("--out", default=".", help="Output folder (default: current directory)")
    p.add_argument("-q", "--quiet", action="store_true", help="No progress line, warnings and errors only")
    p.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    args = p.parse_args(argv)

    level = logging.DEBUG if args.verbose else logging.WARNING if args.quiet else logging.INFO
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")
    log.setLevel(level)

    try:
        medium = RawMedium(args.source)
    except OSError as e:
        log.error("Error opening disk: %s", e)
        return 1

    with medium:
        total = medium.total_size()
        if total is None:
            log.error("Failed to retrieve disk size.")
            return 1

        print("Starting recovery...")
        print(f"Total disk/image size: {total} bytes")

        def on_progress(cur: int, tot: int):
            if not args.quiet:
                print(f"\r{format_progress(cur, tot)}", end="", flush=True)

        def on_found(r):
            status = "complete" if r.completed else f"unterminated, {r.reason.value}"
            print(f"\nRecovered JPEG file: {r.name} ({r.size} bytes, {status})")

        c = JpegCarver(progress_cb=on_progress, found_cb=on_found)
        try:
            report = c.scan(medium, DirectorySink(args.out))
        except ArtifactCreationError as e:
            print()
            log.error("%s", e)
            return 1
        except OSError as e:
            print()
            log.error("Error writing recovered file: %s", e)
            return 1

    print(f"\n{len(report.results)} JPEG file(s) recovered "
          f"({len(report.completed)} complete, {len(report.unterminated)} unterminated), "
          f"{len(report.faults)} bad sector(s) skipped")
    print("Recovery completed!")
    return 0

if __name__ == "__main__":
    sys.exit(main())
