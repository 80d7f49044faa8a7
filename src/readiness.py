"""Pre-flight readiness checks against a vCenter.

Validates prerequisites before connecting:
- Host resolution and reachability
- vSphere API endpoint availability
"""

import socket

import requests
import urllib3

from config import VCenterConfig

# Suppress SSL warnings for self-signed certs
urllib3.disable_warnings(urllib3.exceptions.InsecureRequestWarning)


def validate_vcenter_endpoint(host: str, port: int = 443, verify: bool = False) -> tuple[bool, str]:
    """Check that the vSphere SDK endpoint answers.

    Fetches the unauthenticated service versions document that every
    vCenter publishes under /sdk.

    Returns:
        (success, message) tuple
    """
    url = f"https://{host}:{port}/sdk/vimServiceVersions.xml"
    try:
        resp = requests.get(url, verify=verify, timeout=10)

        if resp.status_code == 200:
            return True, f"vSphere API accessible at {host}:{port}"

        return False, f"Unexpected API response: {resp.status_code} - {resp.text[:100]}"

    except requests.exceptions.ConnectionError as e:
        return False, f"Cannot connect to {url}: {e}"
    except requests.exceptions.Timeout:
        return False, f"Timeout connecting to {url}"
    except requests.exceptions.RequestException as e:
        return False, f"Error checking vSphere API: {e}"


def validate_host_resolvable(host: str, port: int = 443) -> tuple[bool, str]:
    """Resolve the vCenter host for its SDK port.

    Returns:
        (success, message) tuple listing the resolved addresses
    """
    try:
        infos = socket.getaddrinfo(host, port, type=socket.SOCK_STREAM)
    except socket.gaierror as e:
        return False, f"vCenter host '{host}' does not resolve ({e}). Check host: in vcenters/*.yaml"
    addresses = sorted({info[4][0] for info in infos})
    return True, f"vCenter {host} resolves to {', '.join(addresses)}"


def validate_host_reachable(host: str, port: int = 443, timeout: float = 5.0) -> tuple[bool, str]:
    """Open a TCP connection to the vCenter SDK port."""
    try:
        with socket.create_connection((host, port), timeout=timeout):
            pass
    except socket.timeout:
        return False, f"vCenter {host}:{port} did not accept a connection within {timeout}s"
    except OSError as e:
        return False, f"vCenter {host}:{port} refused the connection: {e}. Check port: in vcenters/*.yaml"
    return True, f"vCenter SDK port {host}:{port} is open"


def run_preflight(config: VCenterConfig) -> list[tuple[str, bool, str]]:
    """Run all checks for a vCenter, stopping at the first failure.

    Returns:
        List of (check name, success, message) tuples
    """
    results = []
    checks = [
        ('resolve', lambda: validate_host_resolvable(config.host, port=config.port)),
        ('reachable', lambda: validate_host_reachable(config.host, port=config.port)),
        ('api', lambda: validate_vcenter_endpoint(config.host, config.port, verify=not config.insecure)),
    ]
    for name, check in checks:
        success, message = check()
        results.append((name, success, message))
        if not success:
            break
    return results
