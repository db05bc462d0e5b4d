import argparse
import asyncio
import logging
import sys

from subdir_downloader.downloader import download
from subdir_downloader.schemas import Config

parser = argparse.ArgumentParser(
    prog='subdir-downloader',
    description='Download a single directory of a GitHub repository.',
    epilog='GITHUB_TOKEN, SUBDIR_DOWNLOADER_REQUESTS and '
    'SUBDIR_DOWNLOADER_MUTE_LOG provide defaults for --token, --requests and --quiet.',
)
parser.add_argument('url', help='https://github.com/<owner>/<repo>/tree/<ref>/<path>')
parser.add_argument('output', nargs='?', help='defaults to the last path segment')
parser.add_argument(
    '-x', '--exclude',
    action='append',
    default=[],
    metavar='NAME',
    help='file name to skip, may be repeated',
)
parser.add_argument('--token')
parser.add_argument('-r', '--requests', type=int)
parser.add_argument('-q', '--quiet', action='store_true')
parser.add_argument('-v', '--verbose', action='store_true')


async def main(argv: list[str] | None = None) -> int:
    args = parser.parse_args(argv)
    try:
        env_config = Config.from_env()
    except ValueError as exc:
        parser.error(f'invalid environment configuration: {exc}')
    if args.requests is not None and args.requests < 1:
        parser.error('--requests must be positive')
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='%(asctime)s: %(message)s',
    )
    config = Config(
        token=args.token or env_config.token,
        requests=args.requests or env_config.requests,
        mute_log=args.quiet or env_config.mute_log,
    )
    stats = await download(args.url, args.output, args.exclude, config)
    return 0 if stats.success else 1


def run() -> None:
    sys.exit(asyncio.run(main()))


if __name__ == '__main__':
    run()
