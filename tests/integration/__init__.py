"""
Integration tests package.

Tests de integración que verifican el funcionamiento correcto de:
- Repositorios SQL sobre aiosqlite (oferta pendiente única, lock_version)
- Flujo completo de farmout con transacciones reales
- Deadlock Retry
- Health Checks

Para ejecutar solo tests de integración:
    pytest tests/integration/
"""
