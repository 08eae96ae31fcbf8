#!/usr/bin/env python3
"""
Router Information Tool

Simple example showing how to get router information.
All authentication is handled automatically by the API.
"""

import os
import sys

# Add parent directory to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from archer_api.errors import RouterError
from archer_api.router_api import RouterAPI


def authenticate() -> RouterAPI:
    """Environment variables first, then saved credentials, then prompts"""
    try:
        api = RouterAPI.from_env()
        print("\n✅ Authenticated using environment variables")
        return api
    except ValueError:
        pass

    try:
        api = RouterAPI.from_saved_credentials()
        print("\n✅ Authenticated using saved credentials")
        return api
    except ValueError:
        return RouterAPI.login_interactive()


def print_section(title: str, values: dict, labels: list):
    print("\n" + "─"*70)
    print(title)
    print("─"*70)

    if 'error' in values:
        print(f"   ⚠️  Not available: {values['error']}")
        return
    if not values:
        print("   ⚠️  No data returned")
        return

    for key, label in labels:
        print(f"   {label:<22} {values.get(key, 'N/A')}")


def format_uptime(value: str) -> str:
    try:
        seconds = int(value)
    except (TypeError, ValueError):
        return value or 'N/A'
    days = seconds // 86400
    hours = (seconds % 86400) // 3600
    minutes = (seconds % 3600) // 60
    return f"{days}d {hours}h {minutes}m"


def main():
    if len(sys.argv) > 1 and sys.argv[1] in ['--help', '-h']:
        print("="*70)
        print("📡 ARCHER ROUTER API - ROUTER INFORMATION TOOL")
        print("="*70)
        print("\nUsage:")
        print("  python router_info.py              # Interactive login")
        print("  python router_info.py --help       # Show this help")
        print("\nEnvironment Variables:")
        print("  ROUTER_URL             Router base URL (default: http://192.168.1.1)")
        print("  ROUTER_USERNAME        Username (default: admin)")
        print("  ROUTER_PASSWORD        Password")
        print("  ROUTER_TIMEOUT         Transport timeout in seconds")
        return 0

    print("="*70)
    print("📡 ARCHER ROUTER API - ROUTER INFORMATION TOOL")
    print("="*70)

    try:
        api = authenticate()
    except (ValueError, RouterError) as e:
        print(f"\n❌ Authentication failed: {e}")
        return 1
    except KeyboardInterrupt:
        print("\n\n❌ Cancelled by user")
        return 1

    print("\n" + "="*70)
    print("🔌 CONNECTED TO ROUTER")
    print("="*70)
    print(f"   Router URL: {api.router_url}")
    print("   Session: Active")

    info = api.get_all_info()

    device = dict(info['device'])
    if 'upTime' in device:
        device['upTime'] = format_uptime(device['upTime'])

    print_section("🖥️  SYSTEM INFORMATION", device, [
        ('modelName', 'Model:'),
        ('description', 'Description:'),
        ('softwareVersion', 'Firmware:'),
        ('hardwareVersion', 'Hardware:'),
        ('serialNumber', 'Serial:'),
        ('upTime', 'Uptime:'),
    ])

    print_section("🌐 WAN CONNECTION", info['wan'], [
        ('name', 'Interface:'),
        ('connectionStatus', 'Status:'),
        ('externalIPAddress', 'IP Address:'),
        ('defaultGateway', 'Gateway:'),
        ('DNSServers', 'DNS:'),
    ])

    print_section("📶 DSL LINE", info['dsl'], [
        ('status', 'Status:'),
        ('modulationType', 'Modulation:'),
        ('downstreamCurrRate', 'Down rate (kbps):'),
        ('upstreamCurrRate', 'Up rate (kbps):'),
        ('downstreamNoiseMargin', 'Down SNR margin:'),
        ('upstreamNoiseMargin', 'Up SNR margin:'),
    ])

    print_section("📱 LTE LINK", info['lte'], [
        ('connectStatus', 'Status:'),
        ('networkType', 'Network type:'),
        ('simStatus', 'SIM status:'),
        ('roamingStatus', 'Roaming:'),
    ])

    api.logout()
    print("\n" + "="*70)
    return 0


if __name__ == "__main__":
    sys.exit(main())
