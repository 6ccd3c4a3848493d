"""
Capa de Dominio - Despacho de farmout.

Lógica de negocio pura, sin dependencias de frameworks.

Estructura:
- entities/: Reservation, Driver, FarmoutOffer y efectos secundarios
- value_objects/: PhoneNumber y clasificación de respuestas
- farmout_state_machine.py: estados y transiciones de farmout
- ranking.py: orden de candidatos
- errors.py: excepciones de dominio
"""
