"""
Administrative helpers around the Google Workspace Python client.
The goal is to take care of the tedious parts of admin scripting against
Workspace: authentication, retrying quota errors, pagination, fanning work
out over threads and driving commands from CSV files.

The API families are thin wrappers that build a request on a shared service
(see access.gws), run it through the retrier and return the raw response
dicts; only a few resources (Drive files, configs, shared contacts) get
dataclasses.

Typical use:
    cfg = config.get_config(".gsm")
    config.apply_config(cfg)
    logs.init_logging(cfg.logFile)
    access.set_transport(auth.transport_from_config(cfg))
    for u in admin.users.list(domain="example.com"):
        ...
"""
