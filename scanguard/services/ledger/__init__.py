from .trust_registry import TrustRegistry, ContractTrustRegistry, InMemoryTrustRegistry, build_trust_registry

__all__ = ['TrustRegistry', 'ContractTrustRegistry', 'InMemoryTrustRegistry', 'build_trust_registry']
