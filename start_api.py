#!/usr/bin/env python3
"""
Wait for the database, run migrations, seed, then start uvicorn.
Same as the ticketswift-api console script.
"""
from ticketswift.bootstrap import main

if __name__ == "__main__":
    main()
