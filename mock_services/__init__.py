"""Mock implementations of the external systems used by the pricing service."""
