"""Command-line front end for the saved rooms."""
import argparse
import sys
from typing import Any, Dict, List, Optional

from colorama import Fore, Style, init

from .groups_client import GroupsAPIError, GroupsClient
from .realtime import RealtimeGateway
from .rooms import EVENT_DELETED, MissingAdminCodeError, RoomManager
from .settings import load_config, resolve_socket_url, setup_logging
from .store import RoomStore

init(autoreset=True)


def _print_rooms(admin_groups: List[Dict], links: List[Dict]) -> None:
    print(f"{Fore.CYAN}{Style.BRIGHT}Rooms you administer")
    if not admin_groups:
        print(f"{Fore.YELLOW}  (none)")
    for group in admin_groups:
        line = f"  {group['join_code']}  {group['name']}  admin={group['admin_code']}"
        if group.get('owner_access_code'):
            owner = group.get('owner_participant_name') or group['owner_participant_id']
            line += f"  you={owner} ({group['owner_access_code']})"
        print(line)

    print(f"{Fore.CYAN}{Style.BRIGHT}Rooms you participate in")
    if not links:
        print(f"{Fore.YELLOW}  (none)")
    for link in links:
        print(f"  {link['join_code']}  {link['group_name']}  "
              f"{link['participant_name']} ({link['access_code']})")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='santa-rooms',
        description='Keep track of the gift-exchange rooms you created or joined',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  santa-rooms rooms                            # List saved rooms, most recent first
  santa-rooms create "Oficina" --owner Ana     # Create a room you administer
  santa-rooms join K3X9QF --name Luis          # Join a room as a participant
  santa-rooms watch K3X9QF                     # Follow a room's live events
        """
    )
    parser.add_argument('--config', '-c', default='config.json',
                        help='Path to config file (default: config.json)')
    parser.add_argument('--storage-dir', help='Directory holding the saved rooms')
    parser.add_argument('--log-level', help='DEBUG, INFO, WARNING, ERROR')

    sub = parser.add_subparsers(dest='command', required=True)
    sub.add_parser('rooms', help='List saved rooms')

    create = sub.add_parser('create', help='Create a room')
    create.add_argument('name')
    create.add_argument('--owner', required=True, help='Your display name')
    create.add_argument('--email')

    join = sub.add_parser('join', help='Join a room')
    join.add_argument('code')
    join.add_argument('--name', required=True)
    join.add_argument('--email')

    open_ = sub.add_parser('open', help='Load a room you administer')
    open_.add_argument('code')
    open_.add_argument('--admin-code')

    delete = sub.add_parser('delete', help='Delete a room on the server and forget it')
    delete.add_argument('code')

    forget = sub.add_parser('forget', help='Forget a room locally')
    forget.add_argument('code')

    watch = sub.add_parser('watch', help='Follow live events for a room')
    watch.add_argument('code')
    return parser


def run(args: argparse.Namespace, config: Dict[str, Any],
        store: Optional[RoomStore] = None,
        client: Optional[GroupsClient] = None,
        gateway: Optional[RealtimeGateway] = None) -> int:
    store = store or RoomStore(config['storage_dir'])
    if args.command == 'rooms':
        _print_rooms(store.list_administered_groups(), store.list_participant_links())
        return 0
    if args.command == 'forget':
        store.forget_group(args.code)
        print(f"{Fore.GREEN}Forgot room {args.code.upper()}")
        return 0

    client = client or GroupsClient(config['api_base_url'],
                                    timeout=config['api_timeout_seconds'])
    manager = RoomManager(store, client)
    try:
        if args.command == 'create':
            data = manager.create_room(args.name, args.owner, args.email)
            print(f"{Fore.GREEN}Room created. Join code: {data.get('joinCode')}")
        elif args.command == 'join':
            data = manager.join_room(args.code, args.name, args.email)
            print(f"{Fore.GREEN}Joined {args.code.upper()}. "
                  f"Access code: {data.get('accessCode')}")
        elif args.command == 'open':
            data = manager.load_room(args.code, args.admin_code)
            if data is None:
                print(f"{Fore.RED}No admin code saved for {args.code.upper()}; use --admin-code")
                return 1
            print(f"{Fore.GREEN}{data.get('name')} "
                  f"({len(data.get('participants') or [])} participants)")
        elif args.command == 'delete':
            manager.delete_room(args.code)
            print(f"{Fore.GREEN}Room {args.code.upper()} deleted")
        elif args.command == 'watch':
            return _watch(manager, gateway or RealtimeGateway(resolve_socket_url(config)),
                          args.code)
    except (GroupsAPIError, MissingAdminCodeError) as e:
        print(f"{Fore.RED}Error: {e}")
        return 1
    return 0


def _watch(manager: RoomManager, gateway: RealtimeGateway, code: str) -> int:
    def _on_change(outcome: str, message: Dict[str, Any]) -> None:
        print(f"{Fore.CYAN}{message.get('event')}{Style.RESET_ALL} -> {outcome}")
        if outcome == EVENT_DELETED:
            print(f"{Fore.YELLOW}Room {code.upper()} was deleted")
            gateway.disconnect()

    gateway.connect()
    try:
        with manager.watch(gateway, code, on_change=_on_change):
            print(f"{Fore.GREEN}Watching {code.upper()} (Ctrl+C to stop)")
            gateway.wait()
    except KeyboardInterrupt:
        pass
    finally:
        gateway.disconnect()
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point"""
    args = build_parser().parse_args(argv)
    config = load_config(args.config)
    if args.storage_dir:
        config['storage_dir'] = args.storage_dir
    setup_logging(args.log_level or config['log_level'])
    return run(args, config)


if __name__ == '__main__':
    sys.exit(main())
