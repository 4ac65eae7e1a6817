"""
build_translations.py - Writes and compiles the Spanish message catalog.
Run after changing any user-facing API message:
    python build_translations.py
"""

import os
from babel.messages.pofile import read_po
from babel.messages.mofile import write_mo

basedir = os.path.abspath(os.path.dirname(__file__))
TRANSLATIONS_DIR = os.path.join(basedir, 'translations')

PO_HEADER = r"""
msgid ""
msgstr ""
"Project-Id-Version: 1.0\n"
"Report-Msgid-Bugs-To: \n"
"POT-Creation-Date: 2024-01-01 00:00+0000\n"
"PO-Revision-Date: 2024-01-01 00:00+0000\n"
"Last-Translator: \n"
"Language-Team: \n"
"Language: es\n"
"MIME-Version: 1.0\n"
"Content-Type: text/plain; charset=UTF-8\n"
"Content-Transfer-Encoding: 8bit\n"
"""

TRANSLATIONS = {
    # --- REWARDS ---
    "%(name)s reached %(threshold)s points and earned a reward!":
        "¡%(name)s alcanzó %(threshold)s puntos y ganó un premio!",
    "Added %(name)s": "Se agregó a %(name)s",

    # --- ERRORS ---
    "Invalid delta": "Cambio de puntos inválido",
    "Not found": "No encontrado",
    "Storage unavailable": "Almacenamiento no disponible",
    "Missing required fields": "Faltan campos obligatorios",
    "Missing Data": "Faltan datos",
    "Name required": "El nombre es obligatorio",
    "Invalid credentials": "Credenciales inválidas",
    "Email and password required": "Correo y contraseña obligatorios",
    "Email already registered": "El correo ya está registrado",
    "Already initialized": "Ya está inicializado",
}


def _escape(text):
    return text.replace('\\', '\\\\').replace('"', '\\"')


def write_po(po_file, translations=TRANSLATIONS):
    os.makedirs(os.path.dirname(po_file), exist_ok=True)
    with open(po_file, 'w', encoding='utf-8') as f:
        f.write(PO_HEADER)
        for k, v in translations.items():
            f.write(f'\nmsgid "{_escape(k)}"\n')
            f.write(f'msgstr "{_escape(v)}"\n')


def compile_po(po_file, mo_file):
    with open(po_file, 'rb') as f:
        catalog = read_po(f)
    with open(mo_file, 'wb') as f:
        write_mo(f, catalog)
    return catalog


def build(translations_dir=TRANSLATIONS_DIR, lang='es', translations=TRANSLATIONS):
    messages_dir = os.path.join(translations_dir, lang, 'LC_MESSAGES')
    po_file = os.path.join(messages_dir, 'messages.po')
    mo_file = os.path.join(messages_dir, 'messages.mo')

    print(f"Generating {po_file}...")
    write_po(po_file, translations)
    print(f"Compiling to {mo_file}...")
    compile_po(po_file, mo_file)
    print("SUCCESS: Translations updated!")
    return mo_file


if __name__ == "__main__":
    build()
