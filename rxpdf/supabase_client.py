# rxpdf/supabase_client.py

import logging
import os
from functools import lru_cache

from supabase import Client, create_client

logger = logging.getLogger(__name__)


@lru_cache(maxsize=1)
def get_supabase_client() -> Client | None:
    """
    Returns the service-role client used for the persistent font cache,
    or None when Supabase is not configured.
    """
    url = os.getenv("SUPABASE_URL")
    service_role_key = os.getenv("SUPABASE_SERVICE_ROLE_KEY")

    logger.info("Supabase startup: service role key present=%s", bool(service_role_key))

    if not url or not service_role_key:
        logger.warning(
            "Supabase client disabled: SUPABASE_URL or SUPABASE_SERVICE_ROLE_KEY is missing. "
            "Fonts will be cached on local disk."
        )
        return None

    client = create_client(url, service_role_key)
    logger.info("Supabase client initialized for font storage.")
    return client
