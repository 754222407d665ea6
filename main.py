import logging

from fastapi import FastAPI, Depends, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import asc
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

import models
import schemas
from config import LEADERBOARD_SIZE, MAX_DISKS, MIN_DISKS, valid_disk_count
from database import engine, get_db, Base
from errors import RemoteUnavailable
from leaderboard import UNAVAILABLE, Leaderboard, RankedStore

# Create tables on startup
Base.metadata.create_all(bind=engine)

app = FastAPI(
    title="Towers of Hanoi Leaderboard API",
    description="Global top-10 leaderboard per disk count for Towers of Hanoi",
    version="1.0.0"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


class SqlRankedStore(RankedStore):
    """Ranked store backed by the ``leaderboard`` table; one row per entry."""

    def __init__(self, db: Session, size: int = LEADERBOARD_SIZE):
        self.db = db
        self.size = size

    async def fetch_top_k(self, disk_count):
        try:
            rows = self.db.query(models.LeaderboardEntry).filter(
                models.LeaderboardEntry.disk_count == disk_count
            ).order_by(
                asc(models.LeaderboardEntry.moves),
                asc(models.LeaderboardEntry.time_seconds),
                asc(models.LeaderboardEntry.id)
            ).limit(self.size).all()
        except SQLAlchemyError as e:
            raise RemoteUnavailable(str(e)) from e
        return [
            schemas.LeaderboardEntry(name=row.name, moves=row.moves, time=row.time_seconds,
                                     timestamp=row.timestamp)
            for row in rows
        ]

    async def write_top_k(self, disk_count, entries):
        # Replace the whole list for this disk count, as the client computed it
        try:
            self.db.query(models.LeaderboardEntry).filter(
                models.LeaderboardEntry.disk_count == disk_count
            ).delete()
            for entry in entries:
                self.db.add(models.LeaderboardEntry(
                    disk_count=disk_count,
                    name=entry.name,
                    moves=entry.moves,
                    time_seconds=entry.time,
                    timestamp=entry.timestamp,
                ))
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise RemoteUnavailable(str(e)) from e


def get_leaderboard(db: Session = Depends(get_db)) -> Leaderboard:
    return Leaderboard(SqlRankedStore(db))


def check_disk_count(disk_count: int):
    if not valid_disk_count(disk_count):
        raise HTTPException(status_code=400, detail=f"Disk count must be between {MIN_DISKS} and {MAX_DISKS}")


@app.get("/")
async def root():
    return {
        "message": "Towers of Hanoi Leaderboard API",
        "disk_counts": list(range(MIN_DISKS, MAX_DISKS + 1)),
        "leaderboard_size": LEADERBOARD_SIZE
    }


@app.get("/leaderboard/{disk_count}", response_model=schemas.LeaderboardResponse)
async def get_leaderboard_entries(
    disk_count: int,
    leaderboard: Leaderboard = Depends(get_leaderboard)
):
    check_disk_count(disk_count)
    entries = await leaderboard.fetch(disk_count)
    return schemas.LeaderboardResponse(disk_count=disk_count, size=leaderboard.size, entries=entries)


@app.get("/leaderboard/{disk_count}/qualify", response_model=schemas.QualificationResponse)
async def check_qualification(
    disk_count: int,
    moves: int = Query(...),
    time: int = Query(...),
    leaderboard: Leaderboard = Depends(get_leaderboard)
):
    check_disk_count(disk_count)
    qualifies, rank = await leaderboard.check_qualification(disk_count, moves, time)
    return schemas.QualificationResponse(disk_count=disk_count, qualifies=qualifies, rank=rank)


@app.post("/leaderboard/", response_model=schemas.SubmissionResponse)
async def add_leaderboard_entry(
    entry: schemas.LeaderboardEntryCreate,
    leaderboard: Leaderboard = Depends(get_leaderboard)
):
    result = await leaderboard.submit(entry.disk_count, entry.name, entry.moves, entry.time_seconds)
    if not result.accepted:
        if result.reason == UNAVAILABLE:
            raise HTTPException(status_code=503, detail=result.reason)
        raise HTTPException(status_code=400, detail=result.reason)
    return schemas.SubmissionResponse(
        accepted=True,
        name=result.name,
        rank=result.rank,
        entries=result.entries
    )


if __name__ == "__main__":
    import uvicorn
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(name)s %(levelname)s %(message)s")
    uvicorn.run(app, host="0.0.0.0", port=8000)
