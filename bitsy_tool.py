import argparse
import json
import logging
import sys
from configparser import ConfigParser
from enum import Enum
from typing import Dict, List, Optional, TextIO

from bitsy_errors import DecodeError, EncodeError
from fntrans import decode_with_strategy, encode_with_strategy

logger = logging.getLogger(__name__)

DEFAULTS = {
    "Logging": {"Level": "WARNING", "File": "", "Mode": "a"},
    "Output": {"Format": "text"},
}


class EnumEncoder(json.JSONEncoder):
    def default(self, obj):
        if isinstance(obj, Enum):
            return obj.name   # symbolic name
        return super().default(obj)


def load_config(path: str) -> ConfigParser:
    """
    Reads the INI configuration; a missing file leaves the defaults in place.
    """
    config = ConfigParser()
    config.read_dict(DEFAULTS)
    if config.read(path):
        logger.debug(f"configuration read from {path}")
    return config


def setup_logging(config: ConfigParser, level: Optional[str] = None) -> None:
    section = config["Logging"]
    level_name = (level or section["Level"]).upper()
    numeric = logging.getLevelName(level_name)
    if not isinstance(numeric, int):
        raise ValueError(f"Unknown logging level '{level_name}'")
    if section["File"]:
        logging.basicConfig(filename=section["File"], filemode=section["Mode"], level=numeric)
    else:
        logging.basicConfig(level=numeric)


def transcode(command: str, name: str) -> Dict:
    """
    Encodes or decodes one name.

    :return: report with keys input, output, strategy, error and too_long
    """
    report = {"input": name, "output": None, "strategy": None, "error": None, "too_long": False}
    try:
        if command == "encode":
            report["strategy"], report["output"] = encode_with_strategy(name)
        else:
            report["strategy"], report["output"] = decode_with_strategy(name)
    except EncodeError as e:
        logger.info(f"cannot encode {name!r}: {e}")
        report["error"] = f"ENCODING ERROR: {e}"
        report["too_long"] = e.too_long
    except DecodeError as e:
        logger.info(f"cannot decode {name!r}: {e}")
        report["error"] = f"DECODING ERROR: {e}"
    return report


def run(command: str, names: List[str], output_format: str, out: TextIO) -> int:
    status = 0
    for name in names:
        report = transcode(command, name)
        if report["error"]:
            status = 1
        if output_format == "json":
            print(json.dumps(report, cls=EnumEncoder, ensure_ascii=False), file=out)
        else:
            print(report["error"] or report["output"], file=out)
    return status


def main(argv: Optional[List[str]] = None, out: TextIO = sys.stdout) -> int:
    parser = argparse.ArgumentParser(description="Encode file names to Bitsy StrictNames and back.")
    parser.add_argument("command", choices=("encode", "decode"))
    parser.add_argument("names", nargs="+", metavar="NAME")
    parser.add_argument("--config", default="config.ini", help="INI file with [Logging] and [Output] sections")
    parser.add_argument("--format", choices=("text", "json"), default=None, dest="output_format")
    parser.add_argument("--log-level", default=None)
    args = parser.parse_args(argv)

    config = load_config(args.config)
    try:
        setup_logging(config, args.log_level)
    except ValueError as e:
        parser.error(str(e))
    output_format = args.output_format or config["Output"]["Format"]
    if output_format not in ("text", "json"):
        parser.error(f"unknown output format '{output_format}'")
    return run(args.command, args.names, output_format, out)


if __name__ == "__main__":
    sys.exit(main())
