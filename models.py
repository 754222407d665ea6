from sqlalchemy import Column, Integer, String, DateTime, BigInteger
from database import Base
import datetime


class LeaderboardEntry(Base):
    __tablename__ = "leaderboard"

    id = Column(Integer, primary_key=True, index=True)

    disk_count = Column(Integer, index=True, nullable=False)  # 3..10
    name = Column(String(3), nullable=False)

    moves = Column(Integer, nullable=False)
    time_seconds = Column(Integer, nullable=False)

    # epoch milliseconds as reported with the entry
    timestamp = Column(BigInteger, nullable=False)
    created_at = Column(DateTime, default=datetime.datetime.utcnow)

    def __repr__(self):
        return f"<Leaderboard {self.name}: {self.moves} moves, {self.time_seconds}s, {self.disk_count} disks>"
