"""Weight relay: store-and-forward de lecturas de peso hacia el colector.

- measurements: log durable + umbral
- classification: regla de anomalía
- delivery: cliente HTTP del colector
- pipeline: ingesta de una lectura
- sweeper: reintentos periódicos
- endpoints / main: transporte HTTP (FastAPI)
"""
