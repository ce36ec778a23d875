"""
Interface en ligne de commande.

    python -m bloom_spreadsheet export MonLivre/MonLivre.htm export/ [--overwrite]
    python -m bloom_spreadsheet import export/export.xlsx MonLivre/MonLivre.htm

La configuration (niveaux de log, noms de langues) est lue dans .env.
"""

import argparse
import sys
from pathlib import Path
from typing import Optional, Sequence

from dotenv import load_dotenv

from .config import ExportParams, ImportParams, apply_environment, lock_config
from .document import BookDocument
from .exceptions import GridContractError
from .exporter import SpreadsheetExporter
from .importer import SpreadsheetImporter
from .logger import refresh_levels
from .progress import TqdmProgress
from .templates import TemplateLibrary
from .xlsx import read_spreadsheet


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="bloom-spreadsheet",
        description="Export et import de livres Bloom vers/depuis un tableur.",
    )
    commands = parser.add_subparsers(dest="command", required=True)

    export = commands.add_parser("export", help="Exporter un livre vers un tableur")
    export.add_argument("book", type=Path, help="Fichier .htm du livre")
    export.add_argument("output", type=Path, help="Dossier d'export")
    export.add_argument("--overwrite", action="store_true", help="Remplacer un export existant")
    export.add_argument(
        "--retain-markup", action="store_true", help="Écrire le HTML brut des blocs de texte"
    )

    imp = commands.add_parser("import", help="Importer un tableur dans un livre")
    imp.add_argument("spreadsheet", type=Path, help="Fichier .xlsx")
    imp.add_argument("book", type=Path, help="Fichier .htm du livre (modifié en place)")
    imp.add_argument(
        "--remove-other-languages",
        action="store_true",
        help="Supprimer les langues absentes du tableur",
    )
    imp.add_argument(
        "--retain-markup", action="store_true", help="Écrire tel quel le HTML des cellules"
    )
    imp.add_argument(
        "--templates", type=Path, default=None, help="Livre modèle (.htm ou .jinja)"
    )
    return parser


def run_export(args: argparse.Namespace) -> int:
    book = BookDocument.load(args.book)
    exporter = SpreadsheetExporter(params=ExportParams(retain_markup=args.retain_markup))
    path = exporter.export_to_folder(book, args.book.parent, args.output, overwrite=args.overwrite)
    if path is None:
        return 1
    print(f"\n✅ Export terminé : {path}\n")
    return 0


def run_import(args: argparse.Namespace) -> int:
    grid = read_spreadsheet(args.spreadsheet, retain_markup=args.retain_markup)
    book = BookDocument.load(args.book)
    languages = [lang for lang in grid.languages if lang != "*"]
    library = (
        TemplateLibrary.from_template(args.templates, languages)
        if args.templates
        else TemplateLibrary.default(languages)
    )
    importer = SpreadsheetImporter(
        grid,
        book,
        book_folder=args.book.parent,
        spreadsheet_folder=args.spreadsheet.parent,
        template_library=library,
        params=ImportParams(
            remove_other_languages=args.remove_other_languages,
            retain_markup=args.retain_markup,
        ),
        progress=TqdmProgress(),
    )
    try:
        warnings = importer.import_grid()
    except GridContractError as e:
        print(f"❌ {e}", file=sys.stderr)
        return 2
    book.save()
    print(f"\n✅ Import terminé : {args.book} ({len(warnings)} avertissement(s))\n")
    return 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    load_dotenv()
    apply_environment()
    refresh_levels()
    lock_config()

    args = build_parser().parse_args(argv)
    if args.command == "export":
        return run_export(args)
    return run_import(args)


if __name__ == "__main__":
    sys.exit(main())
