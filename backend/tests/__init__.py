"""
Pytest test suite for the Tune Tokenize backend.

Test categories:
- Contract tests: TuneTokenize and MockV3Aggregator on the in-process chain
- Unit tests: chain runtime, services, validators, models, config
- API tests: Full FastAPI app via httpx ASGITransport
"""
