# src/gymledger/utils/id_generator.py

import uuid

def generate_uuid() -> str:
    return str(uuid.uuid4())
