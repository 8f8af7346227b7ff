from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    APP_NAME: str = "framecost"
    COMPANY_NAME: str = "Frame Fabrication Estimator"
    LOG_LEVEL: str = "INFO"

    # Currency display — amounts are never converted, only formatted
    CURRENCY_SYMBOL: str = "₹"
    CURRENCY_GROUPING: str = "indian"  # "indian" (1,23,456.00) or "western" (123,456.00)

    # Add-on multipliers used when a form asks for the standard charges
    FINISHING_CHARGE_RATE_DEFAULT: float = 0.5
    HELPER_CHARGE_RATE_DEFAULT: float = 0.5

    # Preset conversion — from the shop's calculation sheets
    PRESET_MATERIAL_COST: float = 900.0
    PRESET_LABOUR_RATE_PER_MINUTE: float = 2.0
    PRESET_CONSUMABLES_CHARGE: float = 100.0

    # Optional JSON file of extra fabrication sheet rows (merged over the built-ins)
    FABRICATION_SHEET_PATH: str = ""

    # Gemini — optional; extraction degrades to an empty result without a key
    GEMINI_API_KEY: str = ""
    GEMINI_MODEL: str = "gemini-2.0-flash"

    class Config:
        env_file = ".env"


settings = Settings()
