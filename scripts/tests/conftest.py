import sys
import os
import rewardbound.config
import logging

sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
logging.basicConfig(filename="rewardbound_script_test.log", format='%(levelname)s:%(message)s', level=logging.DEBUG)
rewardbound.config.load_configuration()
