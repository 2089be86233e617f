"""Data subpackage - CSV seed loading."""
