"""Customer-group-aware pricing service for the BigCommerce product table widget."""

__version__ = "1.0.0"
