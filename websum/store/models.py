from datetime import datetime, timezone
from sqlalchemy import Column, Integer, Text, Boolean, ForeignKey, TIMESTAMP, JSON
from sqlalchemy.orm import relationship
from .db import Base

def _utcnow() -> datetime:
    return datetime.now(timezone.utc)

class User(Base):
    __tablename__ = "users"
    id = Column(Text, primary_key=True)   # issued by the external auth provider
    email = Column(Text, nullable=False)
    display_name = Column(Text)
    subscription_tier = Column(Text, default="free")   # free/pro/premium
    subscription_status = Column(Text, default="inactive")  # active/inactive/cancelled/past_due
    searches_used = Column(Integer, default=0)
    searches_limit = Column(Integer, default=10)
    stripe_customer_id = Column(Text)
    stripe_subscription_id = Column(Text)
    created_at = Column(TIMESTAMP(timezone=True), default=_utcnow)
    updated_at = Column(TIMESTAMP(timezone=True), default=_utcnow)

    searches = relationship("SearchRequest", back_populates="user", cascade="all, delete-orphan")

class SearchRequest(Base):
    __tablename__ = "searches"
    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Text, ForeignKey("users.id", ondelete="CASCADE"), nullable=True)
    query = Column(Text, nullable=False)
    status = Column(Text, nullable=False)  # searching/completed/error
    total_results = Column(Integer, default=0)
    search_time = Column(Integer)  # milliseconds
    saved = Column(Boolean, default=False, nullable=False)
    searched_urls = Column(JSON)   # [{title, url, domain}] as returned by the result source
    created_at = Column(TIMESTAMP(timezone=True), default=_utcnow)

    user = relationship("User", back_populates="searches")
    results = relationship(
        "SearchResultItem",
        back_populates="search",
        cascade="all, delete-orphan",
        order_by="SearchResultItem.id",
    )

class SearchResultItem(Base):
    __tablename__ = "search_results"
    id = Column(Integer, primary_key=True, autoincrement=True)
    search_id = Column(Integer, ForeignKey("searches.id", ondelete="CASCADE"), nullable=False)
    title = Column(Text, nullable=False)
    url = Column(Text, nullable=False)
    domain = Column(Text, nullable=False)
    published_date = Column(Text)
    reading_time = Column(Text)
    scraping_status = Column(Text, nullable=False)  # success/partial/failed
    summary = Column(Text)
    confidence = Column(Integer)  # 0-100
    sources_count = Column(Integer, default=0)
    keywords = Column(Text)  # JSON array of strings
    # "metadata" is reserved on declarative classes, so the attribute is renamed
    result_metadata = Column("metadata", Text)  # JSON object: topic/category/entities
    error_message = Column(Text)

    search = relationship("SearchRequest", back_populates="results")
