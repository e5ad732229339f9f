"""
Reference Finding Catalog

Fixed findings, file type names and section layout used by the
reference detector and structure parser.
"""

from .types import Severity, Vulnerability, PotentialIssue

CATALOG_VERSION = "1.0"

# Canned vulnerabilities (2 high, 2 medium, 1 low)
VULNERABILITIES = (
    Vulnerability(
        id="vuln-1",
        name="Hardcoded Credentials",
        description="Found hardcoded API keys and passwords in the firmware binary.",
        severity=Severity.HIGH,
        location="offset 0x45A8-0x45F2",
        recommendation="Remove hardcoded credentials and implement secure credential storage.",
        details='API key pattern found: "api_key=a1b2c3d4e5f6g7h8i9j0"',
    ),
    Vulnerability(
        id="vuln-2",
        name="Insecure Communication",
        description="Firmware appears to use unencrypted HTTP communication.",
        severity=Severity.HIGH,
        location="Multiple locations",
        recommendation="Implement TLS/SSL for all network communications.",
        details="Found multiple instances of HTTP URL patterns without HTTPS.",
    ),
    Vulnerability(
        id="vuln-3",
        name="Buffer Overflow Vulnerability",
        description="Potential buffer overflow vulnerability in string handling functions.",
        severity=Severity.MEDIUM,
        location="offset 0x12340-0x12390",
        recommendation="Implement proper input validation and use safer string handling functions.",
        details="Found usage of unsafe strcpy() function without bounds checking.",
    ),
    Vulnerability(
        id="vuln-4",
        name="Outdated Libraries",
        description="Firmware contains outdated versions of OpenSSL (1.0.1e).",
        severity=Severity.MEDIUM,
        location="Library section",
        recommendation="Update to the latest version of OpenSSL.",
        details="OpenSSL 1.0.1e is vulnerable to Heartbleed and other known exploits.",
    ),
    Vulnerability(
        id="vuln-5",
        name="Insufficient Entropy",
        description="Weak random number generation detected.",
        severity=Severity.LOW,
        location="offset 0x7A210-0x7A250",
        recommendation="Implement a cryptographically secure random number generator.",
        details="Using predictable seed value for random number generation.",
    ),
)

# Missing defensive controls
POTENTIAL_ISSUES = (
    PotentialIssue(
        id="issue-1",
        name="No Secure Boot Implementation",
        description="The firmware does not implement secure boot mechanisms.",
        impact="Allows unauthorized firmware modifications and potential compromise.",
        recommendation="Implement secure boot with cryptographic signature verification.",
    ),
    PotentialIssue(
        id="issue-2",
        name="Excessive Debug Information",
        description="Debug symbols and extensive logging remain enabled in the firmware.",
        impact="Provides attackers with detailed information about the system.",
        recommendation="Remove debug symbols and limit logging in production firmware.",
    ),
    PotentialIssue(
        id="issue-3",
        name="No Firmware Update Mechanism",
        description="No secure mechanism for firmware updates was detected.",
        impact="Makes it difficult to patch security vulnerabilities.",
        recommendation="Implement a secure firmware update process with verification.",
    ),
)

RECOMMENDATIONS = (
    "Implement encryption for sensitive data storage",
    "Update all third-party libraries to their latest versions",
    "Remove hardcoded credentials from the firmware",
    "Implement secure boot mechanisms",
    "Add proper input validation for all user inputs",
    "Implement a secure update mechanism with signature verification",
)

# Firmware file extensions (lowercase, without the dot)
FILE_TYPES = {
    "bin": "Binary Firmware",
    "hex": "Intel HEX Format",
    "fw": "Generic Firmware",
    "img": "Disk Image",
    "rom": "Read-Only Memory Image",
    "elf": "Executable and Linkable Format",
    "fdt": "Flattened Device Tree",
    "uboot": "U-Boot Image",
    "dtb": "Device Tree Blob",
}

UNKNOWN_FILE_TYPE = "Unknown Firmware Type"

# (name, fraction of file size, description), in image order
SECTION_LAYOUT = (
    ("Header", 0.02, "Firmware metadata and configuration"),
    ("Bootloader", 0.10, "Initial boot code"),
    ("Kernel", 0.30, "Core system code"),
    ("File System", 0.40, "Embedded file system with configurations and resources"),
    ("Resources", 0.15, "Images, sounds, and other resources"),
    ("Signature", 0.03, "Firmware integrity signature"),
)

# Used when the file content is not available
PLACEHOLDER_ENTROPY = 7.2
PLACEHOLDER_COMPRESSION_RATIO = 0.3
