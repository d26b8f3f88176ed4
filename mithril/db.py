from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy import (
    BigInteger,
    Column,
    Integer,
    String,
)


DB_URL = "sqlite:///quotes.db"

Base = declarative_base()


class Quote(Base):
    """
    An hourly USD quote, stored with the 8 decimals a price feed reports.
    """
    __tablename__ = "quotes"

    id = Column(Integer, primary_key=True, autoincrement=True)
    coin = Column(String)
    vs_currency = Column(String)
    timestamp = Column(Integer)
    price = Column(BigInteger)

    def __repr__(self) -> str:
        return f"Quote(coin={self.coin!r}, timestamp={self.timestamp}, price={self.price})"


def init_db(url: str = DB_URL):
    """
    Connect to the db and if necessary initialise the schema.
    """
    engine = create_engine(url, echo=False)

    Base.metadata.create_all(engine)

    Session = sessionmaker(bind=engine)
    session = Session()

    return session


def drop_all(url: str = DB_URL):
    """
    Delete all structures in this database.
    """
    engine = create_engine(url, echo=False)
    Base.metadata.drop_all(engine)
