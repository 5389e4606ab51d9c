from sqlalchemy.orm import sessionmaker

# Bound to the processor's engine by IndexerProcessorServer.init_db_tables
Session = sessionmaker()
