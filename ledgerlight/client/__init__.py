"""Light-client collaborators around the verification core.

- `config`: env/.env configuration, builds the validator registry once
- `gateway`: HTTP transport to the untrusted API gateway
- `app`: read API that only renders quorum-verified state
"""
