"""Provider adapters for third-party audit data sources.

Every adapter turns one remote API into a normalized result model, or a
typed ``ProviderError``. Use explicit imports:
    from worker.providers.registry import ProviderSet, build_provider_set
    from worker.providers.models import ProviderName, WebsiteScanResult
    from worker.providers.website_scan import WebsiteScanAdapter
"""
