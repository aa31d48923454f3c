# models_bootstrap.py
from user import models as _user_models
from subscription import models as _subscription_models
from availability import models as _availability_models
from timeblock import models as _timeblock_models
from sessions import models as _session_models
