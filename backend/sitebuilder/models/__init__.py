# Import models here so Alembic can discover metadata.
from sitebuilder.models.user import User  # noqa: F401

# Tenancy
from sitebuilder.models.tenant import Tenant  # noqa: F401
from sitebuilder.models.tenant_membership import TenantMembership  # noqa: F401

# Builder content
from sitebuilder.models.website import Website  # noqa: F401
from sitebuilder.models.page import Page  # noqa: F401
from sitebuilder.models.site_component import SiteComponent  # noqa: F401
