"""
Pipeline de sincronización one-way: origen remoto (NocoDB / Airtable) -> cache local.

Objetivos de diseño:
- Esquema dinámico: las columnas se descubren a partir de los registros recibidos.
- Refresco completo: cada corrida reemplaza todas las filas de la tabla dentro de
  una única transacción (o todo o nada).
- La cache es una proyección de texto: todos los valores se guardan como TEXT.
- Aislamiento por tabla: el fallo de una tabla no detiene el refresco del resto.
"""
