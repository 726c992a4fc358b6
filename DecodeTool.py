import argparse
import logging
import multiprocessing
import sys
from concurrent.futures import ThreadPoolExecutor, as_completed
from pathlib import Path
from typing import List, Optional

from tqdm import tqdm

from GalDecode import ByteSource, Configuration, DecodeException, Leniency, decode, load_configuration
from GalDecode.Config import CIPHER_ONLY_PRESETS, PRESETS
from GalDecode.Config.loader import parse_int
from GalDecode.Exceptions import ConfigurationMismatchException, UnexpectedEndOfInputException

logger = logging.getLogger("DecodeTool")

# preset argument that receives --key
_KEY_ARGUMENT = {
    "xor_table": "table",
    "msvc_keystream": "seed",
    "bgi_keystream": "seed",
    "escude_keystream": "seed",
    "omi_feedback": "key",
    "lazycrew_feedback": "key",
    "mrg_feedback": "key",
    "rotate": "key",
}


def args_parse(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Decompress or decipher raw entries cut out of game archives.")
    parser.add_argument("input", help="Encoded file, or a directory of encoded files.")
    parser.add_argument("output", help="Output file, or a directory when the input is a directory.")
    source = parser.add_mutually_exclusive_group()
    source.add_argument("--format", default="lzss", choices=sorted(PRESETS), help="Built-in format preset (default: lzss).")
    source.add_argument("--config", help="JSON configuration file; overrides --format.")
    parser.add_argument("--offset", type=lambda v: int(v, 0), default=0, help="Start of the payload inside each file.")
    parser.add_argument("--size", type=lambda v: int(v, 0), default=None, help="Payload size; defaults to the rest of the file.")
    parser.add_argument("--output-length", type=lambda v: int(v, 0), default=None, help="Decoded size of each entry.")
    parser.add_argument("--length-prefix", type=int, choices=(2, 4), default=None, help="Read the decoded size from a little-endian prefix of this many bytes.")
    parser.add_argument("--key", default=None, help="Key for cipher presets: hex bytes for xor_table, an integer otherwise.")
    parser.add_argument("--strict", action="store_true", help="Fail entries whose input runs out early.")
    parser.add_argument("--threads", type=int, default=0, help="Worker threads for directory input (0 = CPU count).")
    parser.add_argument("-v", "--verbose", action="store_true")

    args = parser.parse_args(argv)
    if args.config is None and args.format in _KEY_ARGUMENT and args.key is None:
        parser.error(f"--format {args.format} needs --key")
    if args.config is None and args.format == "frequency_huffman":
        parser.error("--format frequency_huffman needs a frequency table, use --config")
    return args


def _gather_inputs(root: Path) -> List[Path]:
    files: List[Path] = [path for path in root.rglob("*") if path.is_file()]
    files.sort()
    return files


def _key_value(preset: str, key: str):
    if _KEY_ARGUMENT[preset] == "table":
        try:
            return bytes.fromhex(key)
        except ValueError as e:
            raise ConfigurationMismatchException(f"--key: {e}") from e
    return parse_int(key, "--key")


def _build_config(args: argparse.Namespace, output_length: Optional[int], payload_size: int) -> Configuration:
    leniency = Leniency.STRICT if args.strict else Leniency.LENIENT
    if args.config is not None:
        config = load_configuration(args.config, output_length)
        return config.replace(leniency=Leniency.STRICT) if args.strict else config

    if output_length is None:
        if args.format not in CIPHER_ONLY_PRESETS:
            raise ConfigurationMismatchException(f"--format {args.format} needs --output-length or --length-prefix")
        output_length = payload_size

    options = {"leniency": leniency}
    if args.format in _KEY_ARGUMENT:
        options[_KEY_ARGUMENT[args.format]] = _key_value(args.format, args.key)
    return PRESETS[args.format](output_length, **options)


def decode_file(args: argparse.Namespace, source_path: Path, destination: Path) -> bool:
    with open(source_path, "rb") as fp:
        source = ByteSource.from_stream(fp, args.offset, args.size)

    try:
        output_length = args.output_length
        if args.length_prefix:
            prefix = source.read(args.length_prefix)
            if len(prefix) < args.length_prefix:
                raise UnexpectedEndOfInputException(len(prefix), args.length_prefix)
            output_length = int.from_bytes(prefix, "little")
            source = ByteSource(source.read_all())

        config = _build_config(args, output_length, source.remaining)
        data = decode(source, config)
    except DecodeException as e:
        logger.error("%s: %s", source_path, e.message)
        return False

    destination.parent.mkdir(parents=True, exist_ok=True)
    destination.write_bytes(data)
    logger.debug("%s -> %s (%d bytes)", source_path, destination, len(data))
    return True


def _decode_directory(args: argparse.Namespace, input_dir: Path, output_dir: Path) -> int:
    files = _gather_inputs(input_dir)
    if not files:
        logger.info("No files found in %s.", input_dir)
        return 0

    threads = args.threads if args.threads > 0 else multiprocessing.cpu_count()
    failed = 0
    with tqdm(total=len(files), ncols=150) as pbar:
        with ThreadPoolExecutor(max_workers=threads) as executor:
            futures = [executor.submit(decode_file, args, path, output_dir / path.relative_to(input_dir)) for path in files]
            for future in as_completed(futures):
                if not future.result():
                    failed += 1
                pbar.update(1)
    return failed


def main(argv: Optional[List[str]] = None) -> int:
    args = args_parse(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO, format="%(levelname)s: %(message)s")

    input_path = Path(args.input).expanduser().resolve()
    output_path = Path(args.output).expanduser().resolve()

    if not input_path.exists():
        raise FileNotFoundError(f"Input path does not exist: {input_path}")

    if input_path.is_dir():
        if output_path.exists() and not output_path.is_dir():
            raise NotADirectoryError(f"Output path must be a directory: {output_path}")
        failed = _decode_directory(args, input_path, output_path)
    else:
        if output_path.is_dir():
            output_path = output_path / input_path.name
        failed = 0 if decode_file(args, input_path, output_path) else 1

    if failed:
        logger.error("%d entries could not be decoded.", failed)
    return 1 if failed else 0


if __name__ == "__main__":
    sys.exit(main())
