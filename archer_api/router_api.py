#!/usr/bin/env python3
"""
TP-Link Archer Router API Wrapper

Python access to routers whose web interface encrypts every request
(getParm / cgi_gdpr firmware family).

Usage:
    from archer_api.router_api import RouterAPI

    api = RouterAPI.login(
        router_url="http://192.168.1.1",
        username="admin",
        password="your_password"
    )

    # Get system information
    info = api.get_device_info()
    print(f"Model: {info['modelName']}")
    print(f"Firmware: {info['softwareVersion']}")

    # Any object the web interface reads
    wan = api.query("WAN_IP_CONN", ["connectionStatus", "externalIPAddress"],
                    stack="1,1,1,0,0,0")
"""

import logging
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from .errors import RouterError
from .router_act import (
    DEFAULT_STACK,
    ActRequest,
    ActSection,
    ActType,
    build_requests,
    section_to_map,
)
from .router_auth import AuthManager
from .router_session import RouterSession

_LOGGER = logging.getLogger(__name__)

DEVICE_INFO_ATTRS = (
    'modelName',
    'description',
    'manufacturer',
    'softwareVersion',
    'hardwareVersion',
    'serialNumber',
    'upTime',
)

WAN_IP_ATTRS = (
    'enable',
    'name',
    'connectionStatus',
    'externalIPAddress',
    'subnetMask',
    'defaultGateway',
    'DNSServers',
    'uptime',
)

DSL_ATTRS = (
    'status',
    'modulationType',
    'upstreamCurrRate',
    'downstreamCurrRate',
    'upstreamMaxRate',
    'downstreamMaxRate',
    'upstreamNoiseMargin',
    'downstreamNoiseMargin',
    'upstreamAttenuation',
    'downstreamAttenuation',
)

LTE_ATTRS = (
    'enable',
    'connectStatus',
    'networkType',
    'roamingStatus',
    'simStatus',
)


class RouterAPI:
    """API wrapper for TP-Link Archer routers with encrypted web interface"""

    def __init__(self, session: RouterSession):
        """
        Initialize Router API

        Args:
            session: Logged-in router session
        """
        self.session = session

    @property
    def router_url(self) -> str:
        return self.session.address

    # ========================================================================
    # Convenience Authentication Methods
    # ========================================================================

    @classmethod
    def login(cls, router_url: str = "http://192.168.1.1",
              username: str = "admin",
              password: str = "",
              save_credentials: bool = False,
              credentials_file: Optional[Path] = None) -> 'RouterAPI':
        """
        Create API instance by logging in with username/password

        Raises:
            CannotCreateConnection: On an invalid router address
            CannotLogin: If the handshake fails

        Example:
            >>> api = RouterAPI.login(
            ...     router_url="http://192.168.1.1",
            ...     password="mypassword",
            ...     save_credentials=True
            ... )
        """
        auth = AuthManager(credentials_file)
        return cls(auth.login(router_url, username, password, save_credentials))

    @classmethod
    def from_saved_credentials(cls, credentials_file: Optional[Path] = None) -> 'RouterAPI':
        """
        Create API instance using saved credentials from ~/.archer_router

        Raises:
            ValueError: If no saved credentials found
            CannotLogin: If the handshake fails
        """
        session = AuthManager(credentials_file).login_from_saved()
        if session is None:
            raise ValueError("No saved credentials found. "
                             "Use RouterAPI.login_interactive() to login.")
        return cls(session)

    @classmethod
    def from_env(cls) -> 'RouterAPI':
        """
        Create API instance using environment variables

        Environment variables:
            ROUTER_URL: Router base URL (default: http://192.168.1.1)
            ROUTER_USERNAME: Username (default: admin)
            ROUTER_PASSWORD: Password
            ROUTER_TIMEOUT: Transport timeout in seconds

        Raises:
            ValueError: If ROUTER_PASSWORD is not set
            CannotLogin: If the handshake fails
        """
        session = AuthManager().login_from_env()
        if session is None:
            raise ValueError("Could not authenticate from environment variables. "
                             "Set ROUTER_PASSWORD.")
        return cls(session)

    @classmethod
    def login_interactive(cls, save_prompt: bool = True,
                          credentials_file: Optional[Path] = None) -> 'RouterAPI':
        """
        Create API instance with interactive login prompts

        Raises:
            ValueError: If login fails or is cancelled
        """
        session = AuthManager(credentials_file).login_interactive(save_prompt)
        if session is None:
            raise ValueError("Login failed or cancelled.")
        return cls(session)

    def logout(self):
        """Drop the session token"""
        self.session.logout()

    # ========================================================================
    # Act Queries
    # ========================================================================

    def act(self, requests: Sequence[ActRequest]) -> List[ActSection]:
        """Run a raw act batch, one section per request"""
        return self.session.act(requests)

    def query(self, oid: str, attrs: Iterable[str],
              stack: str = DEFAULT_STACK,
              parent_stack: str = DEFAULT_STACK,
              act_type: ActType = ActType.GET) -> Dict[str, str]:
        """
        Read attributes of one configuration object

        Args:
            oid: Object identifier (e.g. 'IGD_DEV_INFO')
            attrs: Attribute names to read
            stack: Instance of the object (e.g. '1,0,0,0,0,0')
            parent_stack: Parent instance
            act_type: GET for single objects, GL for lists

        Returns:
            Dict of attribute name to raw string value
        """
        request = ActRequest(act_type, oid, tuple(attrs), stack, parent_stack)
        section, = self.session.act([request])
        return section_to_map(section)

    def query_many(self, queries: Iterable[Tuple[str, Iterable[str]]]) -> List[Dict[str, str]]:
        """
        Read several objects in one encrypted round trip

        Args:
            queries: (oid, attrs) pairs, read with GET at default stacks

        Returns:
            One dict per query, in order
        """
        sections = self.session.act(build_requests(queries))
        return [section_to_map(section) for section in sections]

    # ========================================================================
    # Convenience Getters
    # ========================================================================

    def get_device_info(self) -> Dict[str, str]:
        """Model, firmware and hardware information"""
        return self.query("IGD_DEV_INFO", DEVICE_INFO_ATTRS)

    def get_wan_ip_status(self, stack: str = "1,1,1,0,0,0") -> Dict[str, str]:
        """IP connection status of a WAN interface"""
        return self.query("WAN_IP_CONN", WAN_IP_ATTRS, stack=stack)

    def get_dsl_status(self, stack: str = "1,0,0,0,0,0") -> Dict[str, str]:
        """DSL line rates, noise margins and attenuation"""
        return self.query("WAN_DSL_INTF_CFG", DSL_ATTRS, stack=stack)

    def get_lte_status(self, stack: str = "2,1,0,0,0,0") -> Dict[str, str]:
        """LTE link state of 4G capable models"""
        return self.query("WAN_LTE_LINK_CFG", LTE_ATTRS, stack=stack)

    def get_all_info(self) -> Dict[str, Any]:
        """
        Query all convenience getters

        Returns:
            Dict with data from all getters, {'error': ...} for failed ones
        """
        info = {}

        getters = [
            ('device', self.get_device_info),
            ('wan', self.get_wan_ip_status),
            ('dsl', self.get_dsl_status),
            ('lte', self.get_lte_status),
        ]

        for name, method in getters:
            try:
                info[name] = method()
            except RouterError as e:
                _LOGGER.debug("Query %s failed: %s", name, e)
                info[name] = {'error': str(e)}

        return info
