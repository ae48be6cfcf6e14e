# bodyid/model_registry/__init__.py


# Register all models here

# User models
from bodyid.users.user_models.user_model import User

# System models
from bodyid.system_models.appointment_model.appointment_model import Appointment
from bodyid.system_models.rating_model.rating_model import Rating
from bodyid.system_models.payment_model.payment_model import Payment
from bodyid.system_models.record_model.record_model import Record
from bodyid.system_models.medical_history_model.medical_history_model import MedicalHistory
from bodyid.system_models.report_analysis_model.report_analysis_model import ReportAnalysis
