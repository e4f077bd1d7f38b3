# app.py
"""
Entrypoint da aplicação.

Uso:
  python app.py migrate --db devis.db
  python app.py add --supplier "Shenzhen Co" --product "Sac" --unit-price 5 --quantity 1000 \
      --weight 0.1 --currency EUR --shipping direct-air:200:50 --local "Camion Dakar:100"
  python app.py list
  python app.py show <id> --display XOF
  python app.py edit <id> --display USD --unit-price 5.60
  python app.py analyze
"""

from devis.adapters.cli import main

if __name__ == "__main__":
    main()
