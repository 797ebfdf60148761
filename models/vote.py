from pydantic import BaseModel

# Per-type counts computed straight from the vote ledger
class VoteTally(BaseModel):
    support: int = 0
    oppose: int = 0
