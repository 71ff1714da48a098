from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    redis_url: str = "redis://localhost:6379"
    redis_max_connections: int = 20

    event_slug: str = "speed-dating-2026"
    event_name: str = "Speed Dating Night"

    total_slots: int = 7
    preference_list_size: int = 7

    # Slots at or past this number favor scarce participants first
    late_slot_threshold: int = 4

    schedule_lock_seconds: int = 60

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


settings = Settings()
