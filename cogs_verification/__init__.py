"""
verification package

Contains the player-report verification relay:
- Parse gold / damage reports out of designated channels
- Relay them into a single review channel
- Track pending records until a reviewer approves them
- Forward approved records to the ledger (Google Sheets web app)
"""
