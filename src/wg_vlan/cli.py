import argparse
import sys
from logging import getLogger
from pathlib import Path
from typing import List, Optional

from . import settings
from .exceptions import VLANError
from .ini import INTERFACE, WireguardConfig
from .init_server import init_vlan
from .ipam import ensure_ip_with_cidr, parse_cidr
from .keys import decode_private_key, encode_key, generate_private_key
from .logging_utils import configure_logging
from .qr import print_qr, save_qr
from .state import check_vlan, load_vlan, save_vlan
from .wireguard import (
    add_client,
    add_client_with_public_key,
    render_client_conf,
    render_server_conf,
    write_client_conf,
    write_server_conf,
)

LOGGER = getLogger(__name__)


# ---------------------------------------------------
# Commande : init
# ---------------------------------------------------

def cmd_init(args):
    path: Path = args.config
    if path.exists():
        raise VLANError(f"config already exists: {path}")

    vlan = init_vlan(
        peer_name=args.name,
        network=args.network,
        listen_port=args.port,
        endpoint=args.endpoint,
        private_key=args.private_key,
        keep_alive=args.keep_alive,
        interface=args.interface,
        clients=args.client,
    )
    check_vlan(vlan)
    save_vlan(vlan, path)

    print(f"[+] VLAN initialisé : {vlan.server.peer_name}")
    print(f"[+] Réseau    : {vlan.server.network}")
    print(f"[+] Clé publique : {vlan.server.public_key}")
    for c in vlan.clients:
        print(f"[+] Client ajouté : {c.peer_name} ({c.network})")
    print(f"[+] Fichier {path} créé.")


# ---------------------------------------------------
# Commande : client-add
# ---------------------------------------------------

def cmd_client_add(args):
    vlan = load_vlan(args.config)

    if args.public_key:
        client = add_client_with_public_key(vlan, args.name, args.public_key)
    else:
        client = add_client(vlan, args.name)
    vlan.normalize()
    save_vlan(vlan, args.config)

    print(f"[+] Client ajouté : {client.peer_name} - {client.network}")
    print(f"[+] Configuration écrite dans : {args.config}")


# ---------------------------------------------------
# Commande : print
# ---------------------------------------------------

def _render(args) -> str:
    vlan = load_vlan(args.config)
    if args.server:
        return render_server_conf(vlan)
    return render_client_conf(vlan, args.client)


def cmd_print(args):
    conf = _render(args)

    if args.format == "text":
        sys.stdout.write(conf)
    elif args.format == "qr":
        print_qr(conf, out=sys.stdout)
    else:
        name = "server" if args.server else args.client
        path = args.output or settings.CONFIGS_DIR / f"{name}.png"
        save_qr(conf, path)
        print(f"[OK] QR code généré : {path}")


# ---------------------------------------------------
# Commande : export
# ---------------------------------------------------

def cmd_export(args):
    vlan = load_vlan(args.config)

    if args.server:
        path = write_server_conf(vlan, args.dir)
    else:
        path = write_client_conf(vlan, args.client, args.dir)

    print(f"[OK] Config générée : {path}")


# ---------------------------------------------------
# Commande : list
# ---------------------------------------------------

def cmd_list(args):
    vlan = load_vlan(args.config)

    print("=== Serveur ===")
    s = vlan.server
    print(f"Nom       : {s.peer_name}")
    print(f"Interface : {s.interface_name}")
    print(f"Réseau    : {s.network}")
    print(f"Port      : {s.listen_port}")
    print(f"Endpoint  : {vlan.public_endpoint or '-'}\n")

    print("=== Clients ===")
    if not vlan.clients:
        print("Aucun client.")
    else:
        for c in vlan.clients:
            suffix = "" if c.private_key else " [clé publique seule]"
            print(f"- {c.peer_name} ({c.network}){suffix}")


# ---------------------------------------------------
# Commande : check
# ---------------------------------------------------

def cmd_check(args):
    vlan = load_vlan(args.config, validate=False)

    warnings, error = vlan.validate()
    for w in warnings:
        print(f"[!] {w}")

    if error is not None:
        for message in error.messages:
            print(f"[ERREUR] {message}")
        return 1

    print(f"[OK] {args.config} est valide ({len(vlan.clients)} clients).")
    return 0


# ---------------------------------------------------
# Commande : generate
# ---------------------------------------------------

def cmd_generate(args):
    parse_cidr(args.address, require_prefix=True)
    key = decode_private_key(args.key) if args.key else generate_private_key()

    conf = WireguardConfig()
    iface = conf.add_section(INTERFACE)
    iface.name = args.name
    iface.set("Address", ensure_ip_with_cidr(args.address))
    iface.set("ListenPort", args.port or "")
    iface.set("PrivateKey", encode_key(key))
    conf.prune()

    sys.stdout.write(conf.render())


# ---------------------------------------------------
# CLI / Parser
# ---------------------------------------------------

def _add_config_arg(p):
    p.add_argument("-f", "--config", type=Path, default=settings.DEFAULT_CONFIG_PATH,
                   help="VLAN YAML document (default: %(default)s)")


def _add_target_args(p):
    target = p.add_mutually_exclusive_group(required=True)
    target.add_argument("-s", "--server", action="store_true", help="the server config")
    target.add_argument("--client", help="the config of this client")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="wg-vlan",
        description="Manage a WireGuard VLAN document and render its peer configs",
    )
    parser.add_argument("--log-level", default=settings.LOG_LEVEL)
    sub = parser.add_subparsers(dest="cmd")

    # init
    p_init = sub.add_parser("init", help="initialize a new VLAN document")
    _add_config_arg(p_init)
    p_init.add_argument("-n", "--name", default=settings.DEFAULT_SERVER_NAME, help="peer name of the server")
    p_init.add_argument("-e", "--endpoint", help="public endpoint for clients to connect to")
    p_init.add_argument("--network", "--net", default=settings.DEFAULT_NETWORK,
                        help="CIDR address/mask of the VLAN subnet")
    p_init.add_argument("-p", "--port", type=int, default=settings.DEFAULT_LISTEN_PORT)
    p_init.add_argument("-k", "--private-key", help="server private key (default: generate a new one)")
    p_init.add_argument("--keep-alive", type=int, default=settings.DEFAULT_KEEP_ALIVE)
    p_init.add_argument("-i", "--interface", default=settings.DEFAULT_INTERFACE)
    p_init.add_argument("--client", action="append", default=[], help="auto-generate a client with this name")
    p_init.set_defaults(func=cmd_init)

    # client-add
    p_add = sub.add_parser("client-add", aliases=["add"], help="add a client to the VLAN")
    _add_config_arg(p_add)
    p_add.add_argument("-n", "--name", required=True, help="name of client to add")
    p_add.add_argument("--pub", "--public-key", dest="public_key",
                       help="public key of the client (default: generate a new key pair)")
    p_add.set_defaults(func=cmd_client_add)

    # print
    p_print = sub.add_parser("print", help="print a WireGuard config")
    _add_config_arg(p_print)
    _add_target_args(p_print)
    p_print.add_argument("--format", choices=["text", "qr", "png"], default="text")
    p_print.add_argument("-o", "--output", type=Path, help="PNG path for --format png")
    p_print.set_defaults(func=cmd_print)

    # export
    p_export = sub.add_parser("export", help="write a WireGuard config file")
    _add_config_arg(p_export)
    _add_target_args(p_export)
    p_export.add_argument("--dir", type=Path, default=None,
                          help=f"output directory (default: {settings.CONFIGS_DIR})")
    p_export.set_defaults(func=cmd_export)

    # list
    p_list = sub.add_parser("list", help="list server and clients")
    _add_config_arg(p_list)
    p_list.set_defaults(func=cmd_list)

    # check
    p_check = sub.add_parser("check", help="validate a VLAN document")
    _add_config_arg(p_check)
    p_check.set_defaults(func=cmd_check)

    # generate
    p_gen = sub.add_parser("generate", aliases=["gen"], help="print a standalone [Interface] config")
    p_gen.add_argument("-n", "--name", default=settings.DEFAULT_SERVER_NAME)
    p_gen.add_argument("-a", "--address", default=settings.DEFAULT_GENERATE_ADDRESS,
                       help="address of this peer, with a netmask")
    p_gen.add_argument("-p", "--port", type=int, default=settings.DEFAULT_LISTEN_PORT)
    p_gen.add_argument("-k", "--key", help="private key as base64 (default: generate a new one)")
    p_gen.set_defaults(func=cmd_generate)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.log_level)

    if not hasattr(args, "func"):
        parser.print_help()
        return 2

    try:
        return args.func(args) or 0
    except (VLANError, FileNotFoundError) as e:
        LOGGER.error("error: %s", e)
        return 1


if __name__ == "__main__":
    sys.exit(main())
