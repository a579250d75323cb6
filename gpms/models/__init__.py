"""Database models."""

from gpms.models.appointments import appointments
from gpms.models.base import metadata
from gpms.models.form_templates import form_templates
from gpms.models.invoices import invoice_items, invoices
from gpms.models.patients import patients
from gpms.models.practices import practices
from gpms.models.rooms import rooms
from gpms.models.users import users

__all__ = [
    "appointments",
    "form_templates",
    "invoice_items",
    "invoices",
    "metadata",
    "patients",
    "practices",
    "rooms",
    "users",
]
