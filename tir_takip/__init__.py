"""GMİ TIR TAKİP - truck, document and share-link tracking API."""
