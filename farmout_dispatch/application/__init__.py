"""
Capa de Aplicación - Despacho de farmout.

Orquesta el dominio y define los contratos con la infraestructura.

Estructura:
- use_cases/: despacho, respuesta, expiración, reencolado, cancelación
- interfaces/: puertos (repositorios, notificaciones, reloj, transacciones)
- policy.py: parámetros del flujo construidos desde Settings
- driver_directory.py: búsqueda de conductores por teléfono
- effect_publisher.py: ejecución de efectos tras confirmar
"""
