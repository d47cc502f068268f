# app.py
"""
Entrypoint da aplicação.

Uso:
  python app.py migrate --db stockestimate.db
  python app.py dashboard
  python app.py inventory --sort urgency
  python app.py timeline "Soda Ash"
  python app.py snapshot save
  python app.py load-sheet estoque.xlsx
"""

from stockestimate.adapters.cli import main

if __name__ == "__main__":
    main()
