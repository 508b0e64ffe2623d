"""
BatchDesk Test Suite

Tests are organized by domain:
- Batch planning (sales velocity, volume budget, allocation, scaling)
- Manufacture order lifecycle (creation, confirmations, status, ERP)
- HTTP routes and CLI commands
"""
