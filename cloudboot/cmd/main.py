#!/usr/bin/env python3

# This file is part of cloudboot. See LICENSE file for license information.

"""Commandline entry point running the platform bootstrap steps."""

import argparse
import logging
import sys

from cloudboot import cmdline, log, platforms, schema, url_helper, util
from cloudboot import version
from cloudboot.channel import Channel
from cloudboot.context import Context
from cloudboot.exceptions import CloudbootError
from cloudboot.net.platform_config import ParseError

NAME = "cloudboot"

LOG = logging.getLogger(__name__)

# Exit code when the platform offers no machine configuration
EXIT_NO_CONFIG_SOURCE = 2


def get_parser(parser=None):
    """Build or extend an arg parser for the cloudboot utility.

    @param parser: Optional existing ArgumentParser instance which will be
        extended to support the args of this utility.

    @returns: ArgumentParser with proper argument configuration.
    """
    if not parser:
        parser = argparse.ArgumentParser(
            prog=NAME,
            description="Run cloud platform bootstrap steps",
        )
    parser.add_argument(
        "--version",
        "-v",
        action="version",
        version="%(prog)s " + (version.version_string()),
        help="Show program's version number and exit.",
    )
    parser.add_argument(
        "--debug",
        "-d",
        action="store_true",
        help="Show additional pre-action logging (default: %(default)s).",
        default=False,
    )
    parser.add_argument(
        "--config",
        "-c",
        type=str,
        default=None,
        help="Path to the system config (default: $CLOUDBOOT_CFG or %s)."
        % "/etc/cloudboot/cloudboot.cfg",
    )
    parser.add_argument(
        "--platform",
        "-p",
        type=str,
        default=None,
        help="Platform to use instead of the configured one.",
    )
    parser.add_argument(
        "--timeout",
        "-t",
        type=float,
        default=None,
        help="Cancel the operation after this many seconds.",
    )

    subparsers = parser.add_subparsers(title="Subcommands", dest="subcommand")
    subparsers.required = True

    parser_platform = subparsers.add_parser(
        "platform", help="Report the platform name and boot mode."
    )
    parser_platform.set_defaults(action=("platform", handle_platform))

    parser_kargs = subparsers.add_parser(
        "kernel-args", help="Report the kernel arguments of the platform."
    )
    parser_kargs.add_argument(
        "--arch", type=str, default="", help="Target architecture."
    )
    parser_kargs.set_defaults(action=("kernel-args", handle_kernel_args))

    parser_net = subparsers.add_parser(
        "network-config",
        help="Fetch metadata and print the platform network config.",
    )
    parser_net.add_argument(
        "--format",
        "-f",
        choices=["json", "yaml"],
        default="yaml",
        help="Output format (default: %(default)s).",
    )
    parser_net.set_defaults(action=("network-config", handle_network_config))

    parser_fetch = subparsers.add_parser(
        "fetch-config", help="Download the machine configuration document."
    )
    parser_fetch.add_argument(
        "--output",
        "-o",
        type=str,
        default="-",
        help="File to write the configuration to (default: stdout).",
    )
    parser_fetch.set_defaults(action=("fetch-config", handle_fetch_config))
    return parser


def _make_context(args) -> Context:
    if args.timeout:
        return Context.with_timeout(args.timeout)
    return Context()


def handle_platform(name, args, platform):
    sys.stdout.write("%s\t%s\n" % (platform.name, platform.mode()))
    return 0


def handle_kernel_args(name, args, platform):
    sys.stdout.write(
        "%s\n" % cmdline.render(platform.kernel_args(args.arch))
    )
    return 0


def handle_network_config(name, args, platform):
    channel = Channel(capacity=1)
    with _make_context(args) as ctx:
        platform.network_configuration(ctx, channel)
    network_config = channel.receive(timeout=0).to_dict()
    if args.format == "json":
        sys.stdout.write("%s\n" % util.json_dumps(network_config))
    else:
        sys.stdout.write(util.yaml_dumps(network_config))
    return 0


def handle_fetch_config(name, args, platform):
    with _make_context(args) as ctx:
        try:
            data = platform.configuration(ctx)
        except platforms.NoConfigSourceError as e:
            return util.error(
                "No configuration source: %s" % e,
                rc=EXIT_NO_CONFIG_SOURCE,
            )
    if args.output == "-":
        sys.stdout.buffer.write(data)
        sys.stdout.flush()
    else:
        with open(args.output, "wb") as stream:
            stream.write(data)
        LOG.info("Wrote %d bytes to %s", len(data), args.output)
    return 0


def main(sysv_args=None):
    log.configure_root_logger()
    parser = get_parser()
    args = parser.parse_args(sysv_args)

    sys_cfg = util.read_system_config(args.config)
    log.setup_logging(
        sys_cfg, level=logging.DEBUG if args.debug else logging.WARNING
    )
    schema.validate_config(sys_cfg)

    (name, functor) = args.action
    try:
        platform_name = args.platform or platforms.current_platform_name(
            sys_cfg
        )
        platform = platforms.get_platform(platform_name, sys_cfg)
        return functor(name, args, platform)
    except (CloudbootError, url_helper.UrlError, ParseError) as e:
        util.logexc(LOG, "%s failed", name)
        return util.error(str(e))


if __name__ == "__main__":
    sys.exit(main())
