"""Shared FastAPI dependencies."""

from fastapi import Request

from checkout.providers.base import PaymentGateway


def get_gateway(request: Request) -> PaymentGateway:
    """The process-wide gateway created at startup."""
    return request.app.state.gateway
