"""
Shared constants for DID resolution, delegation and signing.
"""

# DID methods accepted by format validation, in display order.
SUPPORTED_DID_METHODS: tuple[str, ...] = ("web", "key", "ion", "ethr", "sov", "indy")

# DID resolution
DID_CACHE_TTL_SECONDS = 60 * 60
DID_FETCH_TIMEOUT_SECONDS = 2.0
DID_CONTEXT_V1 = "https://www.w3.org/ns/did/v1"
ED25519_2020_CONTEXT = "https://w3id.org/security/suites/ed25519-2020/v1"

# Known did:indy namespaces and the resolver endpoints that serve them.
INDY_NAMESPACE_RESOLVERS: dict[str, str] = {
    "sovrin": "https://dev.uniresolver.io/1.0/identifiers/",
    "sovrin:staging": "https://dev.uniresolver.io/1.0/identifiers/",
    "sovrin:builder": "https://dev.uniresolver.io/1.0/identifiers/",
    "indicio": "https://dev.uniresolver.io/1.0/identifiers/",
    "indicio:test": "https://dev.uniresolver.io/1.0/identifiers/",
    "indicio:demo": "https://dev.uniresolver.io/1.0/identifiers/",
    "bcovrin:test": "https://dev.uniresolver.io/1.0/identifiers/",
}

# Delegation
DEFAULT_DELEGATION_MAX_DEPTH = 3
DEFAULT_PAGE_SIZE = 20

# Signed entries
SIGNATURE_TYPE = "Ed25519Signature2020"
VERIFICATION_KEY_TYPE = "Ed25519VerificationKey2020"
PROOF_PURPOSE = "assertionMethod"
REGISTRY_KEY_FRAGMENT = "key-1"
TRP_CONTEXT = "https://w3id.org/trp/v1"
ENTRY_TYPE = "TrustRegistryEntry"
DEFAULT_REGISTRY_DID = "did:web:registry.example.com"
