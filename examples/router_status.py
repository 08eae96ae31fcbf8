#!/usr/bin/env python3
"""
Dump Raw Act Sections

This script runs one act batch against the router and prints every
returned section as JSON. Objects can be given on the command line.

Usage:
    python router_status.py
    python router_status.py IGD_DEV_INFO:modelName,softwareVersion
"""

import json
import logging
import os
import sys

# Add parent directory to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from archer_api.errors import RouterError
from archer_api.router_act import ActRequest, ActType
from archer_api.router_api import DEVICE_INFO_ATTRS, WAN_IP_ATTRS, RouterAPI


def parse_args(args):
    """Turn OID:attr1,attr2 arguments into act requests"""
    requests = []
    for arg in args:
        oid, _, attrs = arg.partition(':')
        requests.append(ActRequest(ActType.GET, oid, tuple(a for a in attrs.split(',') if a)))
    return requests


def main():
    """Fetch and display raw act sections"""

    if os.getenv('ROUTER_DEBUG'):
        logging.basicConfig(level=logging.DEBUG)

    requests = parse_args(sys.argv[1:]) or [
        ActRequest(ActType.GET, "IGD_DEV_INFO", DEVICE_INFO_ATTRS),
        ActRequest(ActType.GET, "WAN_IP_CONN", WAN_IP_ATTRS, stack="1,1,1,0,0,0"),
    ]

    print("=" * 70)
    print("Archer Router - Raw Act Dump")
    print("=" * 70)
    print()

    try:
        print("[*] Authenticating...")
        try:
            api = RouterAPI.from_env()
        except ValueError:
            api = RouterAPI.login_interactive()
        print("[✓] Authentication successful\n")
    except (ValueError, RouterError) as e:
        print(f"[!] Authentication failed: {e}")
        return 1

    print(f"[*] Sending act batch with {len(requests)} request(s)...")
    try:
        sections = api.act(requests)
        print("[✓] Sections retrieved successfully\n")
    except RouterError as e:
        print(f"[!] Act request failed: {e}")
        return 1

    print("=" * 70)
    print("ACT SECTIONS:")
    print("=" * 70)
    print()
    dump = [
        {'oid': req.oid, 'stack': req.stack, 'values': section}
        for req, section in zip(requests, sections)
    ]
    print(json.dumps(dump, indent=2))
    print()
    print("=" * 70)
    print("✅ Complete!")
    print("=" * 70)

    return 0


if __name__ == "__main__":
    try:
        sys.exit(main())
    except KeyboardInterrupt:
        print("\n\n[!] Interrupted by user")
        sys.exit(130)
