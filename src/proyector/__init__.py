"""
======================== ÍNDICE / INDEX ========================
1. Descripción general / Overview
2. Componentes principales / Main components
3. Notas de mantenimiento / Maintenance notes

======================== ESPAÑOL ========================
Archivo: `src/proyector/__init__.py`.
Motor de proyección electoral y muestreo estratificado de mesas.

Componentes detectados:
  - (sin componentes de nivel de módulo / no top-level components)

Notas:
- Mantener esta cabecera sincronizada con cambios estructurales del archivo.

======================== ENGLISH ========================
File: `src/proyector/__init__.py`.
Election projection and stratified station sampling engine.

Detected components:
  - (sin componentes de nivel de módulo / no top-level components)

Notes:
- Keep this header in sync with structural changes in the file.
"""

__version__ = "0.1.0"
