"""Import pipeline services: business rules, pricing, archive, orchestration."""
