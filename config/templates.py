"""
Localized response templates

Category entries are either a plain string or a dict of sub-intent -> string
with a mandatory "general" key. Languages without a table use the default
language's table.
"""

from dataclasses import dataclass
from functools import lru_cache
from typing import Mapping, Optional

from config.keywords import freeze_table
from config.settings import DEFAULT_LANGUAGE

RESPONSE_TEMPLATES = {
    "english": {
        "greeting": "Hello! 🌟 Welcome to Yono777! I'm so happy you're here and I'm excited to help you today. How can I assist you?",
        "escalation": "I understand this needs personal attention. I'm connecting you with a member of our support team now, and they will get back to you here as soon as possible. Thank you for your patience! 🙏",
        "apology": "I'm really sorry for the trouble you're facing. 🙏",
        "deposit": {
            "general": "I'm here to help you with your deposit! Please share your order number or receipt so I can check the status for you. Your money is 100% safe with us.",
            "time": "Unfortunately, I cannot give an exact timeframe for the deposit, as both banks are processing it and performing security checks. Typically, deposit processing can take anywhere from a few minutes to 48 hours. We are closely monitoring the status and will inform you immediately. Thank you for your patience!",
            "fail": "Please give me a moment to check this for you. Dear member, your deposit request is currently pending with our bank representative. Please trust that your money is 100% safe with us.",
            "how": "Depositing is easy! Open the Yono777 app, tap Add Cash, choose your payment method and enter the amount. Keep your order number handy in case you need help.",
        },
        "withdrawal": {
            "general": "I completely understand your concern about withdrawals - your money matters! What specific issue are you facing? Let me know and I'll make sure we get it sorted out for you!",
            "time": "Withdrawals are typically processed within 24-48 hours. To make sure everything goes smoothly, please ensure your bank details are verified. I'll be right here if you need anything else!",
            "fail": "I'm really sorry about this delay - I know how important it is to get your money when you need it. Please verify that your bank details are correct and that your account is fully verified. If everything looks right, share your order number and I'll check it for you.",
        },
        "account": {
            "general": "Your account is important to us, and I'm here to help! What specific issue are you experiencing with your account? Share the details and I'll take care of it right away!",
            "update": "Of course! Updating your bank details is simple - just go to Account Settings > Banking Details. Changes are usually verified within 24 hours.",
            "restrict": "I'm really sorry to hear about this. Account restrictions usually happen due to verification requirements or security measures to protect you. Please complete any pending verification and let me know if the restriction remains.",
        },
        "bonus": {
            "general": "I love helping with bonuses - they're exciting! All bonuses have specific terms and wagering requirements. What would you like to know?",
            "wagering": "Great question! Wagering requirements vary by bonus - typically, bonuses require 30x to 50x wagering before withdrawal. You can see the exact requirement in the bonus details.",
            "missing": "Oh, I'm so sorry you didn't receive your bonus! Please check if you met all the eligibility requirements first. If you did, share the bonus name and I'll look into it.",
        },
        "technical": "I'm really sorry you're experiencing technical difficulties - I know how frustrating that can be! Let's try a quick fix first: please try refreshing the page or clearing your browser cache. If it still doesn't work, tell me what you see on screen.",
        "complaint": "I'm truly sorry you're having this issue - I can understand how upsetting this must be. Please know that I'm here for you and I'm going to do everything I can to help resolve this. Could you share a few more details?",
        "responsible_gaming": "Thank you for telling me - your wellbeing matters more than any game. You can set deposit limits or take a break with self-exclusion from Account Settings > Responsible Gaming. If you'd like, I can guide you through it.",
        "general": {
            "general": "I'm so happy you reached out! I'm here for you and I genuinely want to help. Could you please share a bit more about what you need assistance with? 😊",
            "thanks": "You're very welcome! 😊 I'm so glad I could help you. Is there anything else you'd like to know?",
        },
    },
    "hindi": {
        "greeting": "नमस्ते! 🌟 Yono777 में आपका स्वागत है! मुझे खुशी है कि आप यहां हैं। मैं आपकी कैसे सहायता कर सकता हूं?",
        "escalation": "मैं समझता हूं कि इस पर व्यक्तिगत ध्यान देने की जरूरत है। मैं आपको हमारी सपोर्ट टीम से जोड़ रहा हूं, वे जल्द ही आपसे संपर्क करेंगे। धन्यवाद! 🙏",
        "apology": "आपको हो रही परेशानी के लिए मुझे सच में खेद है। 🙏",
        "deposit": {
            "general": "मैं आपकी जमा राशि में आपकी मदद के लिए यहां हूं! कृपया अपना ऑर्डर नंबर या रसीद साझा करें ताकि मैं आपके लिए स्थिति की जांच कर सकूं।",
            "time": "दुर्भाग्य से, मैं जमा के लिए एक सटीक समय सीमा नहीं दे सकता, क्योंकि दोनों बैंक इसे संसाधित कर रहे हैं। आमतौर पर इसमें कुछ मिनट से 48 घंटे लगते हैं।",
            "fail": "कृपया मुझे इसकी जांच करने के लिए एक क्षण दें। आपका जमा अनुरोध अभी हमारे बैंक प्रतिनिधि के पास लंबित है। आपका पैसा 100% सुरक्षित है।",
        },
        "withdrawal": {
            "general": "मैं निकासी के बारे में आपकी चिंता को पूरी तरह समझता हूं - आपका पैसा मायने रखता है! आपको किस समस्या का सामना करना पड़ रहा है?",
            "time": "निकासी आमतौर पर 24-48 घंटों में संसाधित होती है। कृपया सुनिश्चित करें कि आपके बैंक विवरण सत्यापित हैं।",
            "fail": "इस देरी के लिए मैं वास्तव में क्षमा चाहता हूं। कृपया जांचें कि आपके बैंक विवरण सही हैं और आपका खाता पूरी तरह सत्यापित है।",
        },
        "account": {
            "general": "आपका खाता हमारे लिए महत्वपूर्ण है, और मैं मदद के लिए यहां हूं! आपको अपने खाते में किस समस्या का सामना करना पड़ रहा है?",
        },
        "bonus": {
            "general": "मुझे बोनस के साथ मदद करना पसंद है! सभी बोनस की विशिष्ट शर्तें और वेजरिंग आवश्यकताएं होती हैं। आप क्या जानना चाहेंगे?",
        },
        "technical": "मुझे वास्तव में खेद है कि आप तकनीकी कठिनाइयों का सामना कर रहे हैं। कृपया पेज को रीफ्रेश करें या ब्राउज़र कैश साफ़ करें।",
        "complaint": "मुझे वास्तव में खेद है कि आपको यह समस्या हो रही है। मैं इसे हल करने के लिए हर संभव प्रयास करूंगा।",
        "responsible_gaming": "बताने के लिए धन्यवाद - आपकी भलाई किसी भी गेम से ज़्यादा ज़रूरी है। आप Account Settings > Responsible Gaming में जमा सीमा तय कर सकते हैं या सेल्फ-एक्सक्लूज़न से ब्रेक ले सकते हैं। अगर आप चाहें, तो मैं इसमें आपकी मदद कर सकता हूँ।",
        "general": {
            "general": "मुझे बहुत खुशी है कि आपने संपर्क किया! कृपया बताएं कि आपको किस चीज़ में सहायता चाहिए? 😊",
            "thanks": "आपका बहुत-बहुत स्वागत है! 😊 मुझे खुशी है कि मैं आपकी मदद कर सका। क्या मैं और कुछ कर सकता हूं?",
        },
    },
    "telugu": {
        "greeting": "నమస్కారం! 🌟 Yono777కు స్వాగతం! నేను మీకు ఎలా సహాయం చేయగలను?",
        "escalation": "దీనికి వ్యక్తిగత శ్రద్ధ అవసరమని నేను అర్థం చేసుకున్నాను. నేను మిమ్మల్ని మా సపోర్ట్ టీమ్‌తో కలుపుతున్నాను, వారు త్వరలో మిమ్మల్ని సంప్రదిస్తారు. ధన్యవాదాలు! 🙏",
        "apology": "మీకు కలిగిన ఇబ్బందికి నేను నిజంగా క్షమాపణలు కోరుతున్నాను. 🙏",
        "deposit": {
            "general": "మీ జమలో మీకు సహాయం చేయడానికి నేను ఇక్కడ ఉన్నాను! దయచేసి మీ ఆర్డర్ నంబర్ లేదా రసీదును షేర్ చేయండి.",
            "time": "దురదృష్టవశాత్తు, నేను జమ కోసం ఖచ్చితమైన సమయాన్ని ఇవ్వలేను. సాధారణంగా కొన్ని నిమిషాల నుండి 48 గంటల వరకు పడుతుంది.",
            "fail": "దయచేసి నన్ను దీన్ని తనిఖీ చేయడానికి కొద్ది సేపు ఇవ్వండి. మీ జమ అభ్యర్థన ప్రస్తుతం పెండింగ్‌లో ఉంది. మీ డబ్బు 100% సురక్షితం.",
        },
        "withdrawal": {
            "general": "మీ ఉపసంహరణల గురించి మీ ఆందోళనను నేను పూర్తిగా అర్థం చేసుకున్నాను - మీ డబ్బు ముఖ్యమైనది!",
            "time": "ఉపసంహరణలు సాధారణంగా 24-48 గంటల్లో ప్రాసెస్ చేయబడతాయి.",
            "fail": "ఈ ఆలస్యం గురించి నేను నిజంగా క్షమించండి. దయచేసి మీ బ్యాంక్ వివరాలు సరైనవేనా అని తనిఖీ చేయండి.",
        },
        "account": {
            "general": "మీ ఖాతా మాకు ముఖ్యమైనది, మరియు సహాయం కోసం నేను ఇక్కడ ఉన్నాను!",
        },
        "bonus": {
            "general": "బోనస్‌లతో సహాయం చేయడం నాకు ఇష్టం - అవి ఉత్తేజకరమైనవి!",
        },
        "technical": "మీరు సాంకేతిక ఇబ్బందులను ఎదుర్కొంటున్నారని నేను నిజంగా క్షమించండి. దయచేసి పేజీని రిఫ్రెష్ చేయండి.",
        "complaint": "మీకు ఈ సమస్య ఎదురవుతోందని నేను నిజంగా క్షమించండి. దీన్ని పరిష్కరించడానికి నేను చేయగలిగినదంతా చేస్తాను.",
        "responsible_gaming": "చెప్పినందుకు ధన్యవాదాలు - ఏ ఆట కంటే మీ శ్రేయస్సు ముఖ్యం. మీరు Account Settings > Responsible Gaming లో డిపాజిట్ పరిమితులు పెట్టుకోవచ్చు లేదా సెల్ఫ్-ఎక్స్‌క్లూజన్‌తో విరామం తీసుకోవచ్చు. మీకు కావాలంటే, నేను మీకు సహాయం చేస్తాను.",
        "general": {
            "general": "మీరు సంప్రదించినందుకు నేను చాలా సంతోషిస్తున్నాను! మీకు ఏ విషయంలో సహాయం కావాలో దయచేసి చెప్పండి. 😊",
            "thanks": "మీకు స్వాగతం! 😊 నేను మీకు సహాయం చేయగలిగినందుకు సంతోషంగా ఉంది. ఇంకా ఏమైనా కావాలా?",
        },
    },
}

# Reconciliation results; formatted with the ledger record's fields
RECONCILIATION_TEMPLATES = {
    "english": {
        "success": "✅ **Transaction Status:** Successful\n\nOrder **{order_number}** ({ledger}) has been processed.\nAmount: ₹{amount}\nDelivery: {delivery_type}\nPayment status: {payment_status}\nDate: {date}\n\nPlease reopen the Yono777 app and enjoy gaming!",
        "pending": "⚠️ **Transaction Status:** Pending\n\nOrder **{order_number}** ({ledger}) is still processing.\nAmount: ₹{amount}\nDelivery: {delivery_type}\nPayment status: {payment_status}\nDate: {date}\n\nOur team is following up and will keep you updated.",
        "not_found": "⚠️ I couldn't find order **{order_number}** in our records yet. The payment may still be processing - our relevant team will follow up on this for you.",
    },
    "hindi": {
        "success": "✅ **लेनदेन की स्थिति:** सफल\n\nऑर्डर **{order_number}** ({ledger}) संसाधित हो गया है।\nराशि: ₹{amount}\nडिलीवरी: {delivery_type}\nभुगतान स्थिति: {payment_status}\nतारीख: {date}\n\nकृपया Yono777 ऐप फिर से खोलें और गेमिंग का आनंद लें!",
        "pending": "⚠️ **लेनदेन की स्थिति:** लंबित\n\nऑर्डर **{order_number}** ({ledger}) अभी संसाधित हो रहा है।\nराशि: ₹{amount}\nडिलीवरी: {delivery_type}\nभुगतान स्थिति: {payment_status}\nतारीख: {date}\n\nहमारी टीम इस पर नज़र रख रही है।",
        "not_found": "⚠️ मुझे हमारे रिकॉर्ड में ऑर्डर **{order_number}** अभी नहीं मिला। भुगतान अभी संसाधित हो रहा हो सकता है - हमारी टीम इस पर फॉलो अप करेगी।",
    },
    "telugu": {
        "success": "✅ **లావాదేవీ స్థితి:** విజయవంతం\n\nఆర్డర్ **{order_number}** ({ledger}) ప్రాసెస్ చేయబడింది.\nమొత్తం: ₹{amount}\nడెలివరీ: {delivery_type}\nచెల్లింపు స్థితి: {payment_status}\nతేదీ: {date}\n\nదయచేసి Yono777 యాప్‌ను మళ్లీ తెరిచి గేమింగ్‌ను ఆనందించండి!",
        "pending": "⚠️ **లావాదేవీ స్థితి:** పెండింగ్\n\nఆర్డర్ **{order_number}** ({ledger}) ఇంకా ప్రాసెస్ అవుతోంది.\nమొత్తం: ₹{amount}\nడెలివరీ: {delivery_type}\nచెల్లింపు స్థితి: {payment_status}\nతేదీ: {date}\n\nమా బృందం దీనిని పర్యవేక్షిస్తోంది.",
        "not_found": "⚠️ మా రికార్డుల్లో ఆర్డర్ **{order_number}** ఇంకా కనుగొనబడలేదు. చెల్లింపు ఇంకా ప్రాసెస్ అవుతూ ఉండవచ్చు - మా బృందం దీనిపై ఫాలో అప్ చేస్తుంది.",
    },
}


@dataclass(frozen=True)
class ResponseTemplates:
    """Immutable template lookup with language and category fallbacks"""

    default_language: str
    responses: Mapping
    reconciliation: Mapping

    def _table(self, table: Mapping, language: str) -> Mapping:
        return table.get(language) or table[self.default_language]

    def get(self, language: str, category: str, sub_intent: Optional[str] = None) -> str:
        """
        Resolve a template: sub-intent, then the category's general entry,
        then the default language's general template.
        """
        table = self._table(self.responses, language)
        entry = table.get(category)
        if entry is None:
            return self.responses[self.default_language]["general"]["general"]
        if isinstance(entry, str):
            return entry
        if sub_intent and sub_intent in entry:
            return entry[sub_intent]
        return entry["general"]

    def get_reconciliation(self, language: str, key: str) -> str:
        return self._table(self.reconciliation, language)[key]


def build_templates(default_language: str = DEFAULT_LANGUAGE) -> ResponseTemplates:
    return ResponseTemplates(
        default_language=default_language,
        responses=freeze_table(RESPONSE_TEMPLATES),
        reconciliation=freeze_table(RECONCILIATION_TEMPLATES),
    )


@lru_cache(maxsize=1)
def get_templates() -> ResponseTemplates:
    """Templates loaded once per process"""
    return build_templates()
