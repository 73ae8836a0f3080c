"""
Revenue dashboard client application package.

The client is a presentation and data-fetching layer over the remote
revenue API:
- Remote data gateway: bearer-token HTTP calls with envelope unwrapping
- Query cache: deduplicated fetches, staleness, retry and invalidation
- Entity hooks: per-entity queries and mutations bound to cache keys
- Views: chart rows, event overlays and KPI cards built from hook data

Structure:
- app.main: Composition root wiring settings, gateway, cache and hooks.
- app.adapters: Remote data gateway and persisted session store.
- app.caching: Cache keys, entry state machine, query cache, invalidation map.
- app.hooks: Revenue, event, user, admin and health hooks.
- app.auth: Login/logout session built on the user hooks.
- app.views: Dashboard view-model transforms.
- app.domain: Payload models.
"""
