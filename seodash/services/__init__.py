from .seo_validator import validate_analysis, calculate_overall_score, convert_to_standardized
from .ai_standardizer import standardize_ai_analysis
from .site_metrics import calculate_portfolio_score, compare_scans
