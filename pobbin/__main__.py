"""
POB B.in paste server
"""

import argparse
import asyncio
import inspect
import logging
import os
import sys
from enum import Enum
from pathlib import Path
from typing import Any, get_args

import uvicorn
from pydantic.fields import FieldInfo
from uvicorn.config import LOGGING_CONFIG

from pobbin import codec, pob
from pobbin.config import StorageBackend, get_settings, validate_settings
from pobbin.connections import pobbin_connections
from pobbin.errors import PasteError
from pobbin.logs import setup_logging
from pobbin.pastes import upload_paste
from pobbin.storage import build_storage


def run(args):
    settings = get_settings()
    logging.info(f"Starting server at port {args.port}, debug={not args.nodebug}, storage={settings.storage_backend.value}")
    if validate_settings():
        logging.warning(validate_settings())
    logging.info(
        "To change server config, create an .env file and/or set environment parameters,\n"
        f"{' ' * 26}see README.md or pobbin/config.py for more information.\n"
        f"{' ' * 26}You can also run `python -m pobbin config` to create the .env settings file interactively\n"
    )

    log_config = "logging.yml" if Path("logging.yml").exists() else LOGGING_CONFIG
    uvicorn.run("pobbin.api:app", host="0.0.0.0", reload=not args.nodebug, port=int(args.port), log_config=log_config)


def _read(filename: str) -> str:
    if filename == "-":
        return sys.stdin.read()
    return Path(filename).read_text(encoding="utf-8")


def compress(args):
    text = _read(args.file)
    pob.parse(text)
    print(codec.compress(text))


def decompress(args):
    text = codec.decompress(_read(args.file), max_size=get_settings().max_decompressed_size)
    if not args.no_validate:
        build = pob.parse(text).build
        logging.info(f"Valid build: level {build.level} {build.ascend_class_name or build.class_name}")
    print(text)


async def upload(args):
    settings = get_settings()
    data = Path(args.file).read_bytes() if args.file != "-" else sys.stdin.buffer.read()
    async with pobbin_connections():
        storage = build_storage(settings)
        try:
            paste_id = await upload_paste(
                storage,
                data,
                max_size=settings.max_upload_size,
                max_decompressed_size=settings.max_decompressed_size,
                id_length=settings.id_length,
            )
        except PasteError as e:
            logging.error(f"Could not upload {args.file}: {e.message}")
            sys.exit(1)
    print(f"{settings.host}/{paste_id}")


def base_env():
    settings = get_settings()
    return dict(
        pobbin_host=settings.host,
        pobbin_storage_backend=settings.storage_backend.value,
        pobbin_storage_path=str(settings.storage_path),
    )


def create_env(args):
    if os.path.exists(".env"):
        print("*** File .env already exists, quitting ***")
        sys.exit(1)

    env = base_env()
    if args.sentry_dsn:
        env["pobbin_sentry_dsn"] = args.sentry_dsn
    with open(".env", "w") as f:
        for key, val in env.items():
            f.write(f"{key}={val}\n")
    os.chmod(".env", 0o600)
    print("*** Created .env file ***")


def config_pobbin(args):
    settings = get_settings()
    # Not a useful entry in an actual env_file
    print(f"Reading/writing settings from {settings.env_file}")
    for fieldname, fieldinfo in type(settings).model_fields.items():
        if fieldname == "env_file":
            continue

        validation_function = StorageBackend.validate if fieldname == "storage_backend" else None
        value = getattr(settings, fieldname)
        value = menu(fieldname, fieldinfo, value, validation_function=validation_function)
        if value is ABORTED:
            return
        if value is not UNCHANGED:
            setattr(settings, fieldname, value)

    with settings.env_file.open("w") as f:
        for fieldname, fieldinfo in type(settings).model_fields.items():
            value = getattr(settings, fieldname)
            if doc := fieldinfo.description:
                f.write(f"# {doc}\n")
            if (enum := _enum(fieldinfo)) is not None:
                f.write("# Valid options:\n")
                for option in enum:
                    doc = (option.__doc__ or "").replace("\n", " ")
                    f.write(f"# - {option.name}: {doc}\n")
            if isinstance(value, Enum):
                value = value.value
            if value is None:
                f.write(f"#pobbin_{fieldname}=\n\n")
            else:
                f.write(f"pobbin_{fieldname}={value}\n\n")
    os.chmod(settings.env_file, 0o600)
    print(f"*** Written {bold('.env')} file to {settings.env_file} ***")


def bold(x):
    return "\033[1m" + str(x) + "\033[0m"


ABORTED = object()
UNCHANGED = object()


def _enum(fieldinfo: FieldInfo) -> type[Enum] | None:
    """The enum type of a (possibly optional) enum field, or None"""
    candidates = [fieldinfo.annotation, *get_args(fieldinfo.annotation)]
    for candidate in candidates:
        if isinstance(candidate, type) and issubclass(candidate, Enum):
            return candidate
    return None


def menu(fieldname: str, fieldinfo: FieldInfo, value, validation_function=None):
    print(f"\n{bold(fieldname)}: {fieldinfo.description}")
    if (enum := _enum(fieldinfo)) is not None:
        print("  Possible choices:")
        options: Any = enum
        for option in options:
            print(f"  - {option.name}: {option.__doc__}")
        print()
    print(f"The current value for {bold(fieldname)} is {bold(value)}.")
    while True:
        try:
            value = input("Enter a new value, press [enter] to leave unchanged, or press [control+c] to abort: ")
        except KeyboardInterrupt:
            return ABORTED
        if not value.strip():
            return UNCHANGED
        if validation_function and (message := validation_function(value)):
            print(f"\nInvalid value: {message}")
            continue
        return value


def main():
    parser = argparse.ArgumentParser(description=__doc__, prog="python -m pobbin")

    subparsers = parser.add_subparsers(dest="action", title="action", help="Action to perform:", required=True)
    p = subparsers.add_parser("run", help="Run the paste server in development mode")
    p.add_argument(
        "--no-debug",
        action="store_true",
        dest="nodebug",
        help="Disable debug mode (no auto reload)",
    )
    p.add_argument("-p", "--port", help="Port", default=5000)
    p.set_defaults(func=run)

    p = subparsers.add_parser("create-env", help="Create a minimal .env file")
    p.add_argument("-s", "--sentry-dsn", help="Sentry DSN to report errors to.")
    p.set_defaults(func=create_env)

    p = subparsers.add_parser("config", help="Configure pobbin settings in an interactive menu.")
    p.set_defaults(func=config_pobbin)

    p = subparsers.add_parser("compress", help="Turn build XML into an export code")
    p.add_argument("file", help="File with the build XML, or - for stdin")
    p.set_defaults(func=compress)

    p = subparsers.add_parser("decompress", help="Turn an export code into build XML")
    p.add_argument("file", help="File with the export code, or - for stdin")
    p.add_argument("--no-validate", action="store_true", help="Do not check whether the XML is a valid build")
    p.set_defaults(func=decompress)

    p = subparsers.add_parser("upload", help="Validate and store an export code in the configured storage")
    p.add_argument("file", help="File with the export code, or - for stdin")
    p.set_defaults(func=upload)

    args = parser.parse_args()

    setup_logging(get_settings().log_level)

    try:
        if inspect.iscoroutinefunction(args.func):
            asyncio.run(args.func(args))
        else:
            args.func(args)
    except (codec.DecodeError, pob.ParseError) as e:
        logging.error(str(e))
        sys.exit(1)


if __name__ == "__main__":
    main()
